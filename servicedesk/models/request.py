"""
University Service Desk
Service request domain models.

Models:
    - ServiceRequest: a ticket raised by a student (fee, hostel, IT, ...)
    - StatusHistoryEntry: append-only audit row, one per status change or
      department assignment

Status is an open enumeration: any status may follow any other. There is no
transition table; the history log is the audit trail, not a gate.
"""

from datetime import datetime, timezone

from sqlalchemy import event

from servicedesk.models import db


# ── Constants ────────────────────────────────────────────────────────────────

REQUEST_STATUSES = ("Pending", "InProgress", "Resolved", "Rejected")
REQUEST_CATEGORIES = ("Fee", "Hostel", "IT", "Academic", "Other")
REQUEST_PRIORITIES = ("Low", "Medium", "High")

# Severity order used by the priority report
PRIORITY_RANK = ("High", "Medium", "Low")

DEFAULT_STATUS = "Pending"
DEFAULT_PRIORITY = "Medium"

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
COMMENT_MAX = 500
DEPARTMENT_MIN = 2
DEPARTMENT_MAX = 100

CREATED_COMMENT = "Request created"


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════════════════════
#  SERVICE REQUEST
# ═══════════════════════════════════════════════════════════════════════════

class ServiceRequest(db.Model):
    """
    A service ticket submitted by a student.

    Title, description, category and priority belong to the student while the
    request is Pending. Status and department assignment belong to admins.
    """

    __tablename__ = "service_requests"
    __table_args__ = (
        db.Index("ix_service_requests_created", "created_at"),
        db.Index("ix_service_requests_student_created", "student_id", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(TITLE_MAX), nullable=False)
    description = db.Column(db.String(DESCRIPTION_MAX), nullable=False)
    category = db.Column(db.String(20), nullable=False, index=True)
    priority = db.Column(db.String(20), nullable=False, default=DEFAULT_PRIORITY, index=True)
    status = db.Column(db.String(20), nullable=False, default=DEFAULT_STATUS, index=True)
    assigned_department = db.Column(db.String(DEPARTMENT_MAX), nullable=False, default="", index=True)
    assigned_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    student = db.relationship("User", foreign_keys=[student_id])
    assigned_by = db.relationship("User", foreign_keys=[assigned_by_id])
    status_history = db.relationship(
        "StatusHistoryEntry", back_populates="request",
        cascade="all, delete-orphan", order_by="StatusHistoryEntry.id",
    )

    def append_history(self, status: str, updated_by_id: int, comment: str) -> "StatusHistoryEntry":
        """Append one audit row. Existing rows are never touched."""
        entry = StatusHistoryEntry(
            status=status,
            updated_by_id=updated_by_id,
            comment=comment,
            updated_at=_utcnow(),
        )
        self.status_history.append(entry)
        return entry

    def is_owned_by(self, user_id) -> bool:
        return user_id is not None and int(user_id) == self.student_id

    def to_dict(self):
        """Flat representation with references left as ids."""
        return {
            "id": self.id,
            "studentId": self.student_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
            "assignedDepartment": self.assigned_department or "",
            "assignedBy": self.assigned_by_id,
            "statusHistory": [h.to_dict() for h in self.status_history],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<ServiceRequest {self.id}: {self.title[:40]} [{self.status}]>"


# ═══════════════════════════════════════════════════════════════════════════
#  STATUS HISTORY
# ═══════════════════════════════════════════════════════════════════════════

class StatusHistoryEntry(db.Model):
    """
    Immutable audit row for a request.

    ``status`` is the status the request holds after the event. Assignment
    entries repeat the current status and are told apart from status changes
    only by their comment.
    """

    __tablename__ = "request_status_history"

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(
        db.Integer, db.ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    status = db.Column(db.String(20), nullable=False)
    updated_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    comment = db.Column(db.String(COMMENT_MAX), nullable=False, default="")
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    request = db.relationship("ServiceRequest", back_populates="status_history")
    updated_by = db.relationship("User", foreign_keys=[updated_by_id])

    def to_dict(self):
        return {
            "id": self.id,
            "status": self.status,
            "updatedBy": self.updated_by_id,
            "comment": self.comment,
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<StatusHistoryEntry {self.id}: request={self.request_id} {self.status}>"


class HistoryImmutableError(RuntimeError):
    """Raised when a flush would rewrite a persisted history row."""


@event.listens_for(StatusHistoryEntry, "before_update")
def _reject_history_update(mapper, connection, target):
    raise HistoryImmutableError(
        f"Status history entry {target.id} is append-only and cannot be modified"
    )
