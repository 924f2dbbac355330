"""Resumable batch job that migrates entity photos into durable storage."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from entity_photos.domain.photos import MigrationJobResult, PendingEntity
from entity_photos.errors import MigrationJobError
from entity_photos.services.migration import StoreMigrator
from entity_photos.services.photo_cache import (
    TwoTierPhotoCache,
    cached_photo_from_stored,
)

_logger = logging.getLogger(__name__)


class EntityRepository(Protocol):
    """Persistence interface for photo-bearing entities."""

    def list_pending_entities(
        self, limit: int, max_attempts: int
    ) -> list[PendingEntity]:
        """Return entities that still have provider photos to migrate."""

    def get_pending_entity(self, entity_id: str) -> PendingEntity | None:
        """Return an entity's provider references, if it has any."""

    def record_migration(self, entity_id: str, complete: bool, attempts: int) -> None:
        """Persist the migration outcome for an entity."""


@dataclass
class MigrationJobRunner:
    """Drives the store migrator over entities that lack durable photos."""

    entity_repository: EntityRepository
    migrator: StoreMigrator
    photo_cache: TwoTierPhotoCache
    entity_delay_seconds: float = 0.1
    max_attempts: int = 3

    async def run_batch(self, batch_size: int = 10) -> MigrationJobResult:
        """Migrate up to ``batch_size`` entities, one at a time."""
        try:
            entities = self.entity_repository.list_pending_entities(
                batch_size, self.max_attempts
            )
        except Exception as exc:
            raise MigrationJobError(f"Failed to fetch entities: {exc}") from exc

        if not entities:
            _logger.info("No more entities to migrate")
            return MigrationJobResult(
                migrated_count=0, failed_count=0, total_attempted=0, has_more=False
            )

        _logger.info("Found %s entities to migrate", len(entities))
        migrated = 0
        failed = 0
        for index, entity in enumerate(entities):
            if index and self.entity_delay_seconds:
                await asyncio.sleep(self.entity_delay_seconds)
            try:
                produced = await self._migrate_entity(entity)
            except Exception:
                _logger.exception("Error migrating entity %s", entity.entity_id)
                failed += 1
                continue
            if produced:
                migrated += 1

        _logger.info(
            "Migration batch complete: %s succeeded, %s failed", migrated, failed
        )
        return MigrationJobResult(
            migrated_count=migrated,
            failed_count=failed,
            total_attempted=len(entities),
            has_more=len(entities) == batch_size,
        )

    async def _migrate_entity(self, entity: PendingEntity) -> bool:
        stored_ids = {
            photo.reference_id
            for photo in self.migrator.repository.list_stored_photos(entity.entity_id)
        }
        outstanding = [
            reference
            for reference in entity.references
            if reference.reference_id not in stored_ids
        ]
        result = await self.migrator.migrate(
            entity.entity_id, entity.provider_id, outstanding
        )
        complete = len(result.stored_photos) == result.attempted
        self.entity_repository.record_migration(
            entity.entity_id,
            complete=complete,
            attempts=entity.migration_attempts + 1,
        )
        if result.stored_photos:
            self._refresh_cache(entity.entity_id)
        return bool(result.stored_photos)

    def _refresh_cache(self, entity_id: str) -> None:
        try:
            stored = self.migrator.repository.list_stored_photos(entity_id)
            self.photo_cache.store(
                entity_id, [cached_photo_from_stored(photo) for photo in stored]
            )
        except Exception:
            _logger.warning(
                "Failed to refresh photo cache for entity %s", entity_id, exc_info=True
            )
