"""Department assignment for service requests.

Assignment runs beside the status lifecycle rather than through it: a request
can be routed to a department in any status, and re-routed any number of
times. Each assignment appends a history entry that repeats the *current*
status; the entry is recognisable only by its "Assigned to ..." comment.

Transaction policy: flush only; the route handler commits.
"""
import logging

from servicedesk.core.exceptions import ValidationError
from servicedesk.models.request import DEPARTMENT_MAX, DEPARTMENT_MIN, ServiceRequest
from servicedesk.services import request_store
from servicedesk.services.request_lifecycle import require_admin

logger = logging.getLogger(__name__)


def assignment_comment(department: str) -> str:
    return f"Assigned to {department} department"


def assign_department(request_id: int, actor_id: int, role: str, department: str) -> ServiceRequest:
    """Route a request to ``department`` and record who did it.

    Raises:
        AuthorizationError: actor is not an admin.
        ValidationError: department empty or outside 2-100 characters.
        NotFoundError: unknown request id.
    """
    require_admin(actor_id, role, "assign requests")

    department = department.strip() if isinstance(department, str) else ""
    if not department:
        raise ValidationError("Department is required", details={"department": "Department is required"})
    if not DEPARTMENT_MIN <= len(department) <= DEPARTMENT_MAX:
        msg = f"Department must be between {DEPARTMENT_MIN} and {DEPARTMENT_MAX} characters"
        raise ValidationError(msg, details={"department": msg})

    req = request_store.get_request_for_update(request_id)
    previous = req.assigned_department
    req.assigned_department = department
    req.assigned_by_id = actor_id
    req.append_history(req.status, actor_id, assignment_comment(department))
    request_store.flush_request(req)

    logger.info("Request %s assigned %r -> %r by %s", request_id, previous or None, department, actor_id,
                extra={"actor_id": actor_id, "service_request_id": request_id})
    return req
