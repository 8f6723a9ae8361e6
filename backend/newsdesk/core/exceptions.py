"""
Exceptions for Newsdesk.

``EngineError`` subclasses are raised by the services and carry the HTTP
status the API layer answers with. The ``HTTPException`` subclasses are for
errors that only exist at the HTTP boundary.
"""
import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Base class for access-control and syndication errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "engine_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class PermissionDenied(EngineError):
    """Caller's role is insufficient on a site. Nothing was written."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"

    def __init__(self, site_id: UUID | None = None, detail: str | None = None):
        if detail is None:
            detail = (
                f"No permission on site {site_id}" if site_id else "Permission denied"
            )
        super().__init__(detail)
        self.site_id = site_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.site_id is not None:
            data["site_id"] = str(self.site_id)
        return data


class ProtectedEntity(EngineError):
    """Attempt to delete the default site or the last remaining site."""

    code = "protected_entity"


class NoSitesAvailable(EngineError):
    """No site could be resolved as a syndication target."""

    code = "no_sites_available"

    def __init__(self, detail: str = "No sites available. Please create a site first."):
        super().__init__(detail)


class ConcurrentModification(EngineError):
    """A uniqueness constraint rejected a concurrent write. Safe to retry."""

    status_code = status.HTTP_409_CONFLICT
    code = "concurrent_modification"


class InvariantViolation(EngineError):
    """Stored syndication state breaks the single-primary invariant."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "invariant_violation"


class DuplicateSlug(EngineError):
    """Site slug already taken (active or not)."""

    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_slug"

    def __init__(self, slug: str):
        super().__init__(f"A site with slug '{slug}' already exists")
        self.slug = slug


class InvalidSyndication(EngineError):
    """Malformed syndication target set."""

    code = "invalid_syndication"


class EntityNotFound(EngineError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found"
        )


@contextmanager
def integrity_guard(detail: str) -> Iterator[None]:
    """Surface storage uniqueness violations as ``ConcurrentModification``."""
    try:
        yield
    except IntegrityError as e:
        logger.warning(f"Integrity error translated to concurrent modification: {e.orig}")
        raise ConcurrentModification(detail) from e
