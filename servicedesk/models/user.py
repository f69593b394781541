"""
University Service Desk
Account reference model.

Accounts are owned by the identity collaborator (registration, login and
password storage live outside this service). The table exists here so that
request rows can reference their owner and the acting admin, and so that
those references can be resolved into display summaries on read.
"""

from datetime import datetime, timezone

from servicedesk.models import db

ROLES = {"student", "admin"}


class User(db.Model):
    """A student or administrator known to the identity collaborator."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default="student")
    student_number = db.Column(db.String(50), nullable=True, comment="Matriculation number, students only")
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def summary(self, *fields: str) -> dict:
        """Display summary used when a reference is populated.

        ``id``, ``name`` and ``email`` are always present; extra fields
        (``studentId``, ``role``) are added on request.
        """
        data = {"id": self.id, "name": self.name, "email": self.email}
        if "studentId" in fields:
            data["studentId"] = self.student_number
        if "role" in fields:
            data["role"] = self.role
        return data

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"
