"""
Service Request Lifecycle Service

Owns the rules for who may change what on a request, and when:
  - create: any authenticated actor, becomes the owner; seeds history
  - edit / delete: owner only, and only while the request is Pending
  - change_status: admin only; any status may follow any status
  - get_history: owner or admin

Status changes are deliberately unrestricted. Triage is advisory, so there is
no transition table; every change appends one StatusHistoryEntry and the
history is the audit trail. Field edits by the owner are not recorded in
history.

Transaction policy: functions flush, never commit. The route handler commits
once, so a field mutation and its history row land together.

Usage:
    from servicedesk.services.request_lifecycle import change_status

    req = change_status(request_id=7, actor_id=1, role="admin",
                        new_status="Resolved", comment="Refund issued")
    db.session.commit()
"""

import logging

from servicedesk.core.exceptions import AuthorizationError, InvalidStateError
from servicedesk.models.request import (
    CREATED_COMMENT,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    ServiceRequest,
)
from servicedesk.services import request_store
from servicedesk.validators.request_validator import (
    ensure_valid,
    validate_create,
    validate_status,
    validate_update,
)

logger = logging.getLogger(__name__)

ADMIN = "admin"
STUDENT = "student"

# Fields the owner may patch while Pending
EDITABLE_FIELDS = ("title", "description", "category", "priority")


def require_admin(actor_id, role: str, action: str) -> None:
    """Role gate for admin-only operations, also applied behind the route decorator."""
    if role != ADMIN:
        logger.warning("Denied %s: actor %s has role %r", action, actor_id, role,
                       extra={"actor_id": actor_id, "role": role})
        raise AuthorizationError(f"Only administrators may {action}", actor_id=actor_id)


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _owned_pending(request_id: int, actor_id, verb: str) -> ServiceRequest:
    """Load a request the actor owns and may still change, under a row lock."""
    req = request_store.get_request_for_update(request_id)
    if not req.is_owned_by(actor_id):
        logger.warning("Denied %s of request %s by non-owner %s", verb, request_id, actor_id,
                       extra={"actor_id": actor_id, "service_request_id": request_id})
        raise AuthorizationError(f"Not authorized to {verb} this request", actor_id=actor_id)
    if req.status != DEFAULT_STATUS:
        raise InvalidStateError(
            f"Cannot {verb} request after it has been processed", current_status=req.status,
        )
    return req


# ── Create / edit / delete ───────────────────────────────────────────────


def create_request(student_id: int, data: dict) -> ServiceRequest:
    """Create a Pending request owned by ``student_id`` with its seed history entry.

    Raises:
        ValidationError: a required field is missing or malformed.
    """
    ensure_valid(validate_create(data))

    req = ServiceRequest(
        student_id=student_id,
        title=_clean(data["title"]),
        description=_clean(data["description"]),
        category=data["category"],
        priority=data.get("priority") or DEFAULT_PRIORITY,
        status=DEFAULT_STATUS,
        assigned_department="",
    )
    req.append_history(req.status, student_id, CREATED_COMMENT)
    request_store.add_request(req)

    logger.info("Request %s created by %s (%s/%s)", req.id, student_id, req.category, req.priority,
                extra={"actor_id": student_id, "service_request_id": req.id})
    return req


def edit_request(request_id: int, actor_id: int, patch: dict) -> ServiceRequest:
    """Apply the owner's patch to a Pending request.

    Only fields present in ``patch`` change; unknown keys are ignored.

    Raises:
        NotFoundError, AuthorizationError, InvalidStateError, ValidationError
    """
    req = _owned_pending(request_id, actor_id, "update")
    ensure_valid(validate_update(patch))

    for field in EDITABLE_FIELDS:
        if patch.get(field) not in (None, ""):
            setattr(req, field, _clean(patch[field]))

    request_store.flush_request(req)
    logger.info("Request %s edited by owner %s", request_id, actor_id,
                extra={"actor_id": actor_id, "service_request_id": request_id})
    return req


def delete_request(request_id: int, actor_id: int) -> None:
    """Permanently remove a Pending request owned by ``actor_id``.

    Raises:
        NotFoundError, AuthorizationError, InvalidStateError
    """
    req = _owned_pending(request_id, actor_id, "delete")
    request_store.remove_request(req)
    logger.info("Request %s deleted by owner %s", request_id, actor_id,
                extra={"actor_id": actor_id, "service_request_id": request_id})


# ── Status ───────────────────────────────────────────────────────────────


def change_status(
    request_id: int,
    actor_id: int,
    role: str,
    new_status: str,
    comment: str | None = None,
) -> ServiceRequest:
    """Set a request's status and append one history entry.

    Any status may follow any status, including re-opening a Resolved or
    Rejected request.

    Raises:
        AuthorizationError: actor is not an admin (owners included).
        ValidationError: unknown ``new_status``, or a comment that is not a
            string or runs past 500 characters.
        NotFoundError: unknown request id.
    """
    require_admin(actor_id, role, "change request status")
    ensure_valid(validate_status({"status": new_status, "comment": comment}))

    req = request_store.get_request_for_update(request_id)
    previous = req.status
    req.status = new_status
    req.append_history(new_status, actor_id, _clean(comment) or f"Status updated to {new_status}")
    request_store.flush_request(req)

    logger.info("Request %s status %s -> %s by %s", request_id, previous, new_status, actor_id,
                extra={"actor_id": actor_id, "service_request_id": request_id})
    return req


def get_history(request_id: int, actor_id: int, role: str) -> dict:
    """Return ``{requestId, title, statusHistory}`` with actors resolved.

    Raises:
        NotFoundError, AuthorizationError (student viewing another's request)
    """
    req = request_store.get_request(request_id)
    if role != ADMIN and not req.is_owned_by(actor_id):
        raise AuthorizationError("Not authorized to view this request history", actor_id=actor_id)
    return {
        "requestId": req.id,
        "title": req.title,
        "statusHistory": request_store.populate_history(req, "role"),
    }
