"""Two-tier photo cache: in-memory burst dedup over a persisted TTL cache.

Reads check the process-local tier first, then the persisted tier. A persisted
set is fresh while its oldest row is younger than the persisted TTL; stale or
missing sets are reported as not fresh so the caller can re-validate or
migrate. Writes only happen when a caller actually refreshed data.
"""

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from entity_photos.domain.photos import (
    CachedPhoto,
    CachedPhotoSet,
    CacheStats,
    StoredPhoto,
    ValidationResult,
)
from entity_photos.services.cache import Cache, InMemoryCache, utc_now
from entity_photos.services.validation import quality_score

HIGH_QUALITY_SCORE = 80
MEDIUM_QUALITY_SCORE = 60

_logger = logging.getLogger(__name__)


class PhotoCacheRepository(Protocol):
    """Persistence interface for the long-lived cache tier."""

    def list_entity_photos(self, entity_id: str) -> list[CachedPhoto]:
        """Return cached photo rows for an entity."""

    def replace_entity_photos(
        self, entity_id: str, photos: list[CachedPhoto]
    ) -> None:
        """Upsert an entity's rows and drop its rows missing from ``photos``."""

    def record_access(
        self, entity_id: str, photos: list[CachedPhoto], accessed_at: datetime
    ) -> None:
        """Bump fetch counts and last access time for the given rows."""

    def list_cache_rows(self) -> list[CachedPhoto]:
        """Return every cached row, for statistics."""

    def delete_cached_before(self, cutoff: datetime) -> int:
        """Delete rows cached before ``cutoff`` and return how many."""


@dataclass
class TwoTierPhotoCache:
    """Consumer-facing read path for entity photos."""

    repository: PhotoCacheRepository
    memory: Cache = field(default_factory=InMemoryCache)
    memory_ttl_seconds: int = 30
    persisted_ttl_seconds: int = 48 * 3600
    clock: Callable[[], datetime] = utc_now

    def get(self, entity_id: str) -> CachedPhotoSet:
        """Return cached photos for an entity and whether they are fresh.

        A persisted-tier read failure is reported as a miss.
        """
        key = _memory_key(entity_id)
        cached = self.memory.get(key)
        if isinstance(cached, tuple):
            return CachedPhotoSet(photos=list(cached), is_fresh=True)

        try:
            photos = self.repository.list_entity_photos(entity_id)
        except Exception:
            _logger.warning(
                "Persisted photo cache read failed for entity %s",
                entity_id,
                exc_info=True,
            )
            return CachedPhotoSet(photos=[], is_fresh=False)
        if not photos:
            return CachedPhotoSet(photos=[], is_fresh=False)

        oldest = min(photo.cached_at for photo in photos)
        if self._is_expired(oldest):
            _logger.debug("Persisted photo cache stale for entity %s", entity_id)
            return CachedPhotoSet(photos=rank_photos(photos), is_fresh=False)

        self._record_access(entity_id, photos)
        ranked = rank_photos(photos)
        self.memory.set(key, tuple(ranked), ttl_seconds=self.memory_ttl_seconds)
        return CachedPhotoSet(photos=ranked, is_fresh=True)

    def store(self, entity_id: str, photos: list[CachedPhoto]) -> list[CachedPhoto]:
        """Record a refreshed photo set in both tiers."""
        now = self.clock()
        refreshed = [
            CachedPhoto(
                entity_id=entity_id,
                reference_id=photo.reference_id,
                stored_url=photo.stored_url,
                width=photo.width,
                height=photo.height,
                quality_score=photo.quality_score,
                cached_at=now,
            )
            for photo in photos
        ]
        self.repository.replace_entity_photos(entity_id, refreshed)
        ranked = rank_photos(refreshed)
        self.memory.set(
            _memory_key(entity_id), tuple(ranked), ttl_seconds=self.memory_ttl_seconds
        )
        return ranked

    def invalidate(self, entity_id: str) -> None:
        """Forget the in-memory entry for an entity."""
        self.memory.delete(_memory_key(entity_id))

    def stats(self) -> CacheStats:
        """Summarize the persisted tier.

        Quality buckets and the entity count cover unexpired rows only.
        """
        rows = self.repository.list_cache_rows()
        live = [row for row in rows if not self._is_expired(row.cached_at)]
        by_quality = Counter(quality_bucket(row.quality_score) for row in live)
        return CacheStats(
            total_cached=len(rows),
            expired=len(rows) - len(live),
            entities_cached=len({row.entity_id for row in live}),
            by_quality=dict(by_quality),
        )

    def purge_expired(self) -> int:
        """Delete persisted rows older than the persisted TTL."""
        cutoff = self.clock() - timedelta(seconds=self.persisted_ttl_seconds)
        deleted = self.repository.delete_cached_before(cutoff)
        if deleted:
            _logger.info("Purged %s expired photo cache rows", deleted)
        return deleted

    def _record_access(self, entity_id: str, photos: list[CachedPhoto]) -> None:
        try:
            self.repository.record_access(entity_id, photos, self.clock())
        except Exception:
            _logger.warning(
                "Failed to record photo cache access for entity %s",
                entity_id,
                exc_info=True,
            )

    def _is_expired(self, cached_at: datetime) -> bool:
        age = self.clock() - cached_at
        return age > timedelta(seconds=self.persisted_ttl_seconds)


def quality_bucket(score: int) -> str:
    """Group a quality score into a coarse bucket."""
    if score >= HIGH_QUALITY_SCORE:
        return "high"
    if score >= MEDIUM_QUALITY_SCORE:
        return "medium"
    return "low"


def _memory_key(entity_id: str) -> str:
    return f"photos:{entity_id}"


def rank_photos(photos: list[CachedPhoto]) -> list[CachedPhoto]:
    """Order photos best first."""
    return sorted(photos, key=lambda photo: photo.quality_score, reverse=True)


def cached_photo_from_stored(
    photo: StoredPhoto, result: ValidationResult | None = None
) -> CachedPhoto:
    """Build a cache row from a stored photo, scoring it from its metadata."""
    scored = result or ValidationResult(
        is_valid=True,
        content_type=photo.content_type,
        file_size_bytes=photo.file_size_bytes,
    )
    return CachedPhoto(
        entity_id=photo.entity_id,
        reference_id=photo.reference_id,
        stored_url=photo.stored_url,
        width=photo.width,
        height=photo.height,
        quality_score=quality_score(scored),
        cached_at=photo.uploaded_at,
    )
