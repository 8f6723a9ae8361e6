"""
Announcement content store.

Persists the non-authorization fields of announcements. Permission checks
and syndication are the orchestrator's job; nothing here checks roles.
"""
import re
import time
from typing import Any
from uuid import UUID

from bs4 import BeautifulSoup
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.exceptions import integrity_guard
from newsdesk.models.announcement import Announcement, SiteAssociation

EXCERPT_LENGTH = 200
CONTENT_FIELDS = (
    "title",
    "content",
    "image_path",
    "is_pinned",
    "is_published",
    "scheduled_at",
    "takedown_at",
)
NON_NULL_FIELDS = ("title", "content", "is_pinned", "is_published")


def slugify(text: str) -> str:
    """URL slug from a title."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:200] or "announcement"


def generate_excerpt(content: str, max_length: int = EXCERPT_LENGTH) -> str:
    """Plain-text teaser cut on a word boundary."""
    soup = BeautifulSoup(content, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    text = " ".join(soup.get_text(separator=" ", strip=True).split())
    if len(text) <= max_length:
        return text
    cut = text[:max_length].rsplit(" ", 1)[0]
    return f"{cut}..."


class AnnouncementService:
    """Service for announcement content."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, announcement_id: UUID) -> Announcement | None:
        result = await self.db.execute(
            select(Announcement).where(Announcement.id == announcement_id)
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Announcement | None:
        result = await self.db.execute(
            select(Announcement).where(Announcement.slug == slug)
        )
        return result.scalar_one_or_none()

    async def list_for_site(
        self,
        site_id: UUID,
        page: int = 1,
        per_page: int = 20,
        published_only: bool = True,
    ) -> tuple[list[Announcement], int]:
        """Announcements syndicated to a site, pinned first then newest."""
        syndicated = select(SiteAssociation.announcement_id).where(
            SiteAssociation.site_id == site_id
        )
        query = select(Announcement).where(Announcement.id.in_(syndicated))
        count_query = select(func.count(Announcement.id)).where(Announcement.id.in_(syndicated))

        if published_only:
            query = query.where(Announcement.is_published.is_(True))
            count_query = count_query.where(Announcement.is_published.is_(True))

        total_result = await self.db.execute(count_query)
        total = total_result.scalar()

        query = query.order_by(Announcement.is_pinned.desc(), Announcement.created_at.desc())
        query = query.offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(query)

        return list(result.scalars().all()), total

    async def _unique_slug(self, title: str) -> str:
        slug = slugify(title)
        if await self.get_by_slug(slug):
            slug = f"{slug}-{int(time.time() * 1000)}"
        return slug

    async def create(self, data: dict[str, Any], author_id: UUID) -> Announcement:
        """Create an announcement from validated content fields."""
        fields = {k: v for k, v in data.items() if k in CONTENT_FIELDS}
        announcement = Announcement(
            **fields,
            slug=await self._unique_slug(fields["title"]),
            excerpt=generate_excerpt(fields["content"]),
            author_id=author_id,
            updated_by_id=author_id,
        )
        self.db.add(announcement)
        with integrity_guard(f"Announcement slug {announcement.slug!r} was taken concurrently"):
            await self.db.flush()
        await self.db.refresh(announcement)
        return announcement

    async def update(
        self,
        announcement: Announcement,
        data: dict[str, Any],
        editor_id: UUID,
    ) -> Announcement:
        """Apply changed content fields. The slug is kept so links stay valid."""
        for field, value in data.items():
            if field not in CONTENT_FIELDS:
                continue
            if value is None and field in NON_NULL_FIELDS:
                continue
            setattr(announcement, field, value)
        if "content" in data and data["content"] is not None:
            announcement.excerpt = generate_excerpt(data["content"])
        announcement.updated_by_id = editor_id

        await self.db.flush()
        await self.db.refresh(announcement)
        return announcement

    async def delete(self, announcement_id: UUID) -> bool:
        result = await self.db.execute(
            delete(Announcement).where(Announcement.id == announcement_id)
        )
        return result.rowcount > 0
