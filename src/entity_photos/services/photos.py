"""On-demand entity photo lookups backed by the two-tier cache."""

import logging
from dataclasses import dataclass

from entity_photos.domain.photos import CachedPhoto, StoredPhoto
from entity_photos.services.jobs import EntityRepository
from entity_photos.services.migration import StoreMigrator
from entity_photos.services.photo_cache import (
    TwoTierPhotoCache,
    cached_photo_from_stored,
    rank_photos,
)
from entity_photos.services.validation import PhotoValidator

_logger = logging.getLogger(__name__)


@dataclass
class EntityPhotoService:
    """Returns an entity's durable photos, refreshing them lazily."""

    photo_cache: TwoTierPhotoCache
    validator: PhotoValidator
    migrator: StoreMigrator
    entity_repository: EntityRepository

    async def get_photos(self, entity_id: str) -> list[CachedPhoto]:
        """Return ranked photos; an empty list means use a fallback image."""
        cached = self.photo_cache.get(entity_id)
        if cached.is_fresh:
            return cached.photos

        try:
            photos = await self._refresh(entity_id)
        except Exception:
            _logger.exception("Failed to refresh photos for entity %s", entity_id)
            return []
        try:
            return self.photo_cache.store(entity_id, photos)
        except Exception:
            _logger.warning(
                "Failed to cache photos for entity %s", entity_id, exc_info=True
            )
            return rank_photos(photos)

    async def _refresh(self, entity_id: str) -> list[CachedPhoto]:
        stored = self.migrator.repository.list_stored_photos(entity_id)
        photos = await self._validated(stored)
        if photos:
            return photos

        entity = self.entity_repository.get_pending_entity(entity_id)
        if entity is None or not entity.references:
            return []

        _logger.info("No valid stored photos for entity %s, migrating", entity_id)
        result = await self.migrator.migrate(
            entity_id, entity.provider_id, entity.references
        )
        return [cached_photo_from_stored(photo) for photo in result.stored_photos]

    async def _validated(self, stored: list[StoredPhoto]) -> list[CachedPhoto]:
        if not stored:
            return []
        results = await self.validator.validate_many(
            [photo.stored_url for photo in stored]
        )
        photos = []
        for photo in stored:
            result = results[photo.stored_url]
            if not result.is_valid:
                _logger.warning(
                    "Stored photo %s failed validation: %s",
                    photo.stored_url,
                    result.error_kind,
                )
                continue
            photos.append(cached_photo_from_stored(photo, result))
        return photos
