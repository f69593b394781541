"""Request store — persistence access for service requests.

Transaction policy: functions here add/flush/delete, never commit().
The caller (route handler) owns db.session.commit() / rollback().

Provides:
- Row lookup, plain and locked (``SELECT ... FOR UPDATE``) for the
  read-modify-write path of the lifecycle engine
- Filtered listing query with eager reference loading
- Reference resolution ("populate"): owner, assigner and history actors
  expanded into display summaries
- Reporting snapshot: lightweight projection of the fields the
  aggregation engine groups on, restricted to a creation-time window
"""
import logging
from typing import NamedTuple

from sqlalchemy.orm import joinedload, selectinload

from servicedesk.core.exceptions import NotFoundError
from servicedesk.models import db
from servicedesk.models.request import ServiceRequest, StatusHistoryEntry

logger = logging.getLogger(__name__)


class RequestRow(NamedTuple):
    """Immutable projection of one request, as seen by the aggregation engine."""

    status: str
    category: str
    priority: str
    department: str


# ── Lookup ───────────────────────────────────────────────────────────────


def _with_references(query):
    return query.options(
        joinedload(ServiceRequest.student),
        joinedload(ServiceRequest.assigned_by),
        selectinload(ServiceRequest.status_history).joinedload(StatusHistoryEntry.updated_by),
    )


def get_request(request_id: int) -> ServiceRequest:
    """Load a request with its references resolved. Raises NotFoundError."""
    req = _with_references(ServiceRequest.query).filter(ServiceRequest.id == request_id).first()
    if req is None:
        raise NotFoundError("Request", request_id)
    return req


def get_request_for_update(request_id: int) -> ServiceRequest:
    """Load a request under a row lock for the rest of the transaction.

    A status change or assignment mutates the row and appends history in one
    unit; concurrent writers on the same request serialise on this lock.
    """
    req = db.session.get(ServiceRequest, request_id, with_for_update=True)
    if req is None:
        raise NotFoundError("Request", request_id)
    return req


def add_request(req: ServiceRequest) -> ServiceRequest:
    db.session.add(req)
    db.session.flush()
    return req


def flush_request(req: ServiceRequest) -> ServiceRequest:
    db.session.flush()
    return req


def remove_request(req: ServiceRequest) -> None:
    db.session.delete(req)
    db.session.flush()


def find_requests(*, student_id=None, status=None, category=None, priority=None, department=None):
    """Return requests matching every given filter, newest first."""
    query = _with_references(ServiceRequest.query)
    if student_id is not None:
        query = query.filter(ServiceRequest.student_id == student_id)
    if status:
        query = query.filter(ServiceRequest.status == status)
    if category:
        query = query.filter(ServiceRequest.category == category)
    if priority:
        query = query.filter(ServiceRequest.priority == priority)
    if department:
        query = query.filter(ServiceRequest.assigned_department == department)
    return query.order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc()).all()


# ── Reference resolution ─────────────────────────────────────────────────


def _user_ref(user, user_id, *fields):
    if user is not None:
        return user.summary(*fields)
    return user_id


def populate_history(req: ServiceRequest, *actor_fields: str) -> list[dict]:
    """History entries with ``updatedBy`` expanded into a user summary."""
    entries = []
    for entry in req.status_history:
        data = entry.to_dict()
        data["updatedBy"] = _user_ref(entry.updated_by, entry.updated_by_id, *actor_fields)
        entries.append(data)
    return entries


def populate_request(req: ServiceRequest, *, include_history_actors: bool = False) -> dict:
    """Full record with owner and assigner resolved for display.

    History actors are resolved only when ``include_history_actors`` is set;
    otherwise history entries carry the raw actor id.
    """
    data = req.to_dict()
    data["studentId"] = _user_ref(req.student, req.student_id, "studentId")
    data["assignedBy"] = _user_ref(req.assigned_by, req.assigned_by_id) if req.assigned_by_id else None
    if include_history_actors:
        data["statusHistory"] = populate_history(req)
    return data


# ── Reporting snapshot ───────────────────────────────────────────────────


def snapshot(start=None, end=None) -> list[RequestRow]:
    """Project every request created inside ``[start, end]`` (bounds inclusive, optional)."""
    query = db.session.query(
        ServiceRequest.status,
        ServiceRequest.category,
        ServiceRequest.priority,
        ServiceRequest.assigned_department,
    )
    if start is not None:
        query = query.filter(ServiceRequest.created_at >= start)
    if end is not None:
        query = query.filter(ServiceRequest.created_at <= end)
    rows = [
        RequestRow(status or "", category or "", priority or "", department or "")
        for status, category, priority, department in query.all()
    ]
    logger.debug("Report snapshot: %d rows (start=%s end=%s)", len(rows), start, end)
    return rows
