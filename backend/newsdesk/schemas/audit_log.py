"""
Audit log schemas.
"""
from datetime import datetime
from uuid import UUID

from newsdesk.models.activity_log import AuditSeverity
from newsdesk.schemas.common import BaseSchema, IDSchema


class ActivityLogResponse(IDSchema):
    action: str
    entity_type: str
    entity_id: UUID | None
    user_id: UUID | None
    site_id: UUID | None
    changes: dict | None
    severity: AuditSeverity
    created_at: datetime
