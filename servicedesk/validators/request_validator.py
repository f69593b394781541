"""Body validation rules for service request endpoints.

Each ``validate_*`` function takes the parsed JSON body and returns a
``{field: message}`` dict, empty when the body is acceptable. Routes call
``ensure_valid`` which raises ``ValidationError("Validation failed", ...)``
so the blueprint error handler renders the ``errors: [{field, message}]``
shape. The lifecycle engine runs the same rules again on what it receives.
"""

from servicedesk.core.exceptions import ValidationError
from servicedesk.models.request import (
    COMMENT_MAX,
    DEPARTMENT_MAX,
    DEPARTMENT_MIN,
    DESCRIPTION_MAX,
    REQUEST_CATEGORIES,
    REQUEST_PRIORITIES,
    REQUEST_STATUSES,
    TITLE_MAX,
)


def _text(data: dict, field: str):
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return value.strip()


def _check_text(errors, data, field, label, max_len, *, required):
    value = _text(data, field)
    if value is None:
        if required:
            errors[field] = f"{label} is required"
        return
    if not isinstance(value, str):
        errors[field] = f"{label} must be a string"
    elif not value:
        errors[field] = f"{label} is required" if required else f"{label} cannot be empty"
    elif len(value) > max_len:
        errors[field] = f"{label} cannot exceed {max_len} characters"


def _check_choice(errors, data, field, label, choices, *, required):
    value = data.get(field)
    if value is None:
        if required:
            errors[field] = f"{label} is required"
        return
    if value == "" and required:
        errors[field] = f"{label} is required"
        return
    if value not in choices:
        errors[field] = f"Invalid {label.lower()}"


def validate_create(data: dict) -> dict:
    errors = {}
    _check_text(errors, data, "title", "Title", TITLE_MAX, required=True)
    _check_text(errors, data, "description", "Description", DESCRIPTION_MAX, required=True)
    _check_choice(errors, data, "category", "Category", REQUEST_CATEGORIES, required=True)
    _check_choice(errors, data, "priority", "Priority", REQUEST_PRIORITIES, required=False)
    return errors


def validate_update(data: dict) -> dict:
    errors = {}
    _check_text(errors, data, "title", "Title", TITLE_MAX, required=False)
    _check_text(errors, data, "description", "Description", DESCRIPTION_MAX, required=False)
    _check_choice(errors, data, "category", "Category", REQUEST_CATEGORIES, required=False)
    _check_choice(errors, data, "priority", "Priority", REQUEST_PRIORITIES, required=False)
    return errors


def validate_status(data: dict) -> dict:
    errors = {}
    _check_choice(errors, data, "status", "Status", REQUEST_STATUSES, required=True)
    comment = data.get("comment")
    if comment is not None:
        if not isinstance(comment, str):
            errors["comment"] = "Comment must be a string"
        elif len(comment.strip()) > COMMENT_MAX:
            errors["comment"] = f"Comment cannot exceed {COMMENT_MAX} characters"
    return errors


def validate_assignment(data: dict) -> dict:
    errors = {}
    department = _text(data, "department")
    if not department:
        errors["department"] = "Department is required"
    elif not isinstance(department, str) or not DEPARTMENT_MIN <= len(department) <= DEPARTMENT_MAX:
        errors["department"] = (
            f"Department must be between {DEPARTMENT_MIN} and {DEPARTMENT_MAX} characters"
        )
    return errors


def ensure_valid(errors: dict) -> None:
    """Raise ValidationError when ``errors`` is non-empty."""
    if errors:
        raise ValidationError("Validation failed", details=errors)
