"""
Audit log endpoints (super admin only).
"""
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.deps import SuperAdmin, get_db
from newsdesk.models.activity_log import AuditSeverity
from newsdesk.schemas.audit_log import ActivityLogResponse
from newsdesk.schemas.common import PaginatedResponse
from newsdesk.services.audit_log_service import AuditLogService

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


@router.get("", response_model=PaginatedResponse[ActivityLogResponse])
async def list_audit_logs(
    current_user: SuperAdmin,
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    entity_type: str | None = None,
    action: str | None = None,
    user_id: UUID | None = None,
    severity: AuditSeverity | None = None,
):
    """List audit entries, newest first."""
    service = AuditLogService(db)
    logs, total = await service.list_logs(
        page=page,
        per_page=per_page,
        entity_type=entity_type,
        action=action,
        user_id=user_id,
        severity=severity,
    )

    return PaginatedResponse.create(
        items=[ActivityLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        per_page=per_page,
    )
