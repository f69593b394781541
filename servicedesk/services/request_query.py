"""Read-side access to service requests for listing and detail views.

Students only ever see their own requests: listing is scoped to the caller
whatever filters they send, and detail/history lookups on someone else's
request fail with AuthorizationError. Admins see everything.
"""
import logging

from servicedesk.core.exceptions import AuthorizationError, ValidationError
from servicedesk.models.request import REQUEST_CATEGORIES, REQUEST_PRIORITIES, REQUEST_STATUSES
from servicedesk.services import request_store
from servicedesk.services.request_lifecycle import ADMIN
from servicedesk.utils.helpers import parse_int_id

logger = logging.getLogger(__name__)

_ENUM_FILTERS = {
    "status": REQUEST_STATUSES,
    "category": REQUEST_CATEGORIES,
    "priority": REQUEST_PRIORITIES,
}


def _clean_filters(filters: dict) -> dict:
    """Keep known, non-empty filters; reject values outside their enumeration."""
    cleaned = {}
    for field, allowed in _ENUM_FILTERS.items():
        raw = filters.get(field)
        value = "" if raw is None else str(raw).strip()
        if not value:
            continue
        if value not in allowed:
            raise ValidationError(f"Invalid {field} filter", details={field: f"Invalid {field}"})
        cleaned[field] = value
    raw = filters.get("department")
    department = "" if raw is None else str(raw).strip()
    if department:
        cleaned["department"] = department
    return cleaned


def list_requests(caller_id: int, role: str, filters: dict | None = None) -> dict:
    """Return ``{count, requests}`` visible to the caller, newest first.

    Query filters: status, category, priority, department. Admins may also
    pass ``studentId``; for students it is ignored and replaced by the
    caller's own id.
    """
    filters = filters or {}
    criteria = _clean_filters(filters)
    if role == ADMIN:
        raw = filters.get("studentId")
        student_id = parse_int_id(raw)
        if student_id is None and raw not in (None, ""):
            raise ValidationError("Invalid studentId filter", details={"studentId": "Invalid studentId"})
    else:
        student_id = caller_id

    requests = request_store.find_requests(student_id=student_id, **criteria)
    return {
        "count": len(requests),
        "requests": [request_store.populate_request(r) for r in requests],
    }


def get_request(request_id: int, caller_id: int, role: str) -> dict:
    """Full record with owner, assigner and history actors resolved.

    Raises:
        NotFoundError, AuthorizationError (student viewing another's request)
    """
    req = request_store.get_request(request_id)
    if role != ADMIN and not req.is_owned_by(caller_id):
        logger.warning("Denied view of request %s by %s", request_id, caller_id,
                       extra={"actor_id": caller_id, "service_request_id": request_id})
        raise AuthorizationError("Not authorized to view this request", actor_id=caller_id)
    return request_store.populate_request(req, include_history_actors=True)
