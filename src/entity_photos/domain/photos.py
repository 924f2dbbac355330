"""Domain models for entity photo ingestion."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ErrorKind(str, Enum):
    """Reasons a candidate photo URL failed validation."""

    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_TOO_SMALL = "FILE_TOO_SMALL"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


def http_error_kind(status_code: int) -> str:
    """Return the error kind for a non-2xx HTTP status."""
    return f"HTTP_{status_code}"


@dataclass(frozen=True)
class PhotoReference:
    """Opaque photo handle issued by an external provider."""

    reference_id: str
    width: int
    height: int
    attribution: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Point-in-time judgment about a candidate photo URL."""

    is_valid: bool
    error_kind: str | None = None
    content_type: str | None = None
    file_size_bytes: int | None = None


@dataclass(frozen=True)
class StoredPhoto:
    """A provider photo copied into durable storage."""

    entity_id: str
    reference_id: str
    stored_url: str
    width: int
    height: int
    uploaded_at: datetime
    content_type: str | None = None
    file_size_bytes: int | None = None


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of migrating one entity's references."""

    stored_photos: list[StoredPhoto]
    attempted: int


@dataclass(frozen=True)
class MigrationJobResult:
    """Outcome of a single migration job invocation."""

    migrated_count: int
    failed_count: int
    total_attempted: int
    has_more: bool


@dataclass(frozen=True)
class PendingEntity:
    """An entity that still has provider references to migrate."""

    entity_id: str
    provider_id: str | None
    references: list[PhotoReference]
    migration_attempts: int = 0


@dataclass(frozen=True)
class CachedPhoto:
    """A photo row in the persisted cache tier."""

    entity_id: str
    reference_id: str
    stored_url: str
    width: int
    height: int
    quality_score: int
    cached_at: datetime
    fetch_count: int = 0
    last_accessed_at: datetime | None = None


@dataclass(frozen=True)
class CachedPhotoSet:
    """Photos returned by a cache read and whether they are still fresh."""

    photos: list[CachedPhoto]
    is_fresh: bool


@dataclass(frozen=True)
class CacheStats:
    """Aggregate view over the persisted cache tier."""

    total_cached: int
    expired: int
    entities_cached: int
    by_quality: dict[str, int] = field(default_factory=dict)
