"""
Audit trail: the sink that records actions and the reader behind /audit-logs.

The sink writes through its own session so that an audit failure can never
roll back the mutation it describes.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsdesk.config import settings
from newsdesk.models.activity_log import ActivityLog, AuditSeverity

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """One audit record as handed to the sink."""

    action: str
    entity_type: str
    entity_id: UUID | None
    user_id: UUID | None
    site_id: UUID | None
    changes: dict[str, Any] = field(default_factory=dict)
    severity: AuditSeverity = AuditSeverity.INFO
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink:
    """Persists audit entries in ``activity_logs``."""

    def __init__(self, session_factory: async_sessionmaker | None = None):
        if session_factory is None:
            from newsdesk.database import async_session_maker
            session_factory = async_session_maker
        self.session_factory = session_factory

    async def record(self, entry: AuditEntry) -> None:
        """Write one entry and commit it. Raises on storage errors."""
        if not settings.AUDIT_LOG_ENABLED:
            return
        async with self.session_factory() as session:
            session.add(
                ActivityLog(
                    action=entry.action,
                    entity_type=entry.entity_type,
                    entity_id=entry.entity_id,
                    user_id=entry.user_id,
                    site_id=entry.site_id,
                    changes=jsonable_encoder(entry.changes),
                    severity=entry.severity,
                    created_at=entry.timestamp,
                    updated_at=entry.timestamp,
                )
            )
            await session.commit()


async def emit_audit(sink: AuditSink | None, entry: AuditEntry) -> None:
    """Fire-and-forget delivery; failures are logged and swallowed."""
    if sink is None:
        return
    try:
        await sink.record(entry)
    except Exception as e:
        logger.warning(
            f"Failed to record audit entry {entry.action} {entry.entity_type} "
            f"{entry.entity_id}: {e}"
        )


class AuditLogService:
    """Read side of the audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_logs(
        self,
        page: int = 1,
        per_page: int = 20,
        entity_type: str | None = None,
        action: str | None = None,
        user_id: UUID | None = None,
        severity: AuditSeverity | None = None,
    ) -> tuple[list[ActivityLog], int]:
        """List audit entries, newest first."""
        query = select(ActivityLog)
        count_query = select(func.count(ActivityLog.id))

        filters = []
        if entity_type:
            filters.append(ActivityLog.entity_type == entity_type)
        if action:
            filters.append(ActivityLog.action == action)
        if user_id:
            filters.append(ActivityLog.user_id == user_id)
        if severity:
            filters.append(ActivityLog.severity == severity)

        if filters:
            query = query.where(and_(*filters))
            count_query = count_query.where(and_(*filters))

        total_result = await self.db.execute(count_query)
        total = total_result.scalar()

        query = query.order_by(ActivityLog.created_at.desc())
        query = query.offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(query)

        return list(result.scalars().all()), total
