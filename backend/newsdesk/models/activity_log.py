"""
Activity log model backing the audit sink.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Enum, String
from sqlalchemy.dialects.postgresql import JSONB, UUID

from newsdesk.models.base import Base, BaseModel


class AuditSeverity(str, PyEnum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ActivityLog(Base, BaseModel):
    """One audited action. Rows are append-only."""

    __tablename__ = "activity_logs"

    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    # No foreign keys: the trail outlives the users and sites it mentions
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    site_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    changes = Column(JSONB, default=dict)
    severity = Column(
        Enum(AuditSeverity),
        default=AuditSeverity.INFO,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ActivityLog {self.action} {self.entity_type} {self.entity_id}>"
