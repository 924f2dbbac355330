"""Copies provider photos into durable storage."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

import httpx

from entity_photos.adapters.places_photo_client import PhotoProviderClient
from entity_photos.adapters.supabase_storage_client import PhotoStorage
from entity_photos.domain.photos import MigrationResult, PhotoReference, StoredPhoto
from entity_photos.services.cache import utc_now
from entity_photos.services.semaphore import Semaphore

_DEFAULT_CONTENT_TYPE = "image/jpeg"
_DEFAULT_EXTENSION = "jpg"

_logger = logging.getLogger(__name__)


class StoredPhotoRepository(Protocol):
    """Persistence interface for stored photo rows."""

    def upsert_stored_photo(self, photo: StoredPhoto) -> None:
        """Insert or replace the row for ``(entity_id, reference_id)``."""

    def list_stored_photos(self, entity_id: str) -> list[StoredPhoto]:
        """Return stored photos for an entity."""


@dataclass
class StoreMigrator:
    """Downloads provider references once and stores them under stable keys."""

    provider_client: PhotoProviderClient
    storage: PhotoStorage
    repository: StoredPhotoRepository
    semaphore: Semaphore = field(default_factory=lambda: Semaphore(2))
    download_delay_seconds: float = 0.1
    clock: Callable[[], datetime] = utc_now

    async def migrate(
        self,
        entity_id: str,
        provider_id: str | None,
        references: list[PhotoReference],
    ) -> MigrationResult:
        """Migrate every reference, skipping the ones that fail."""
        _logger.info(
            "Storing %s photos for entity %s (provider id %s)",
            len(references),
            entity_id,
            provider_id,
        )
        stored: list[StoredPhoto] = []
        for index, reference in enumerate(references):
            if index and self.download_delay_seconds:
                await asyncio.sleep(self.download_delay_seconds)
            photo = await self._migrate_one(entity_id, reference)
            if photo is not None:
                stored.append(photo)

        _logger.info(
            "Stored %s/%s photos for entity %s",
            len(stored),
            len(references),
            entity_id,
        )
        return MigrationResult(stored_photos=stored, attempted=len(references))

    async def _migrate_one(
        self, entity_id: str, reference: PhotoReference
    ) -> StoredPhoto | None:
        async with self.semaphore:
            try:
                image = await self.provider_client.download_photo(
                    reference.reference_id
                )
            except httpx.HTTPStatusError as exc:
                _logger.warning(
                    "Failed to fetch photo %s: HTTP %s",
                    _short(reference.reference_id),
                    exc.response.status_code,
                )
                return None
            except httpx.HTTPError as exc:
                _logger.warning(
                    "Failed to fetch photo %s: %s", _short(reference.reference_id), exc
                )
                return None

        content_type = image.content_type or _DEFAULT_CONTENT_TYPE
        path = storage_path(
            entity_id,
            self.provider_client.namespace,
            reference.reference_id,
            extension_for(content_type),
        )
        try:
            self.storage.upload(path, image.content, content_type)
            stored_url = self.storage.public_url(path)
        except Exception:
            _logger.exception("Failed to store photo at %s", path)
            return None

        photo = StoredPhoto(
            entity_id=entity_id,
            reference_id=reference.reference_id,
            stored_url=stored_url,
            width=reference.width,
            height=reference.height,
            uploaded_at=self.clock(),
            content_type=content_type,
            file_size_bytes=len(image.content),
        )
        try:
            self.repository.upsert_stored_photo(photo)
        except Exception:
            _logger.exception("Failed to record stored photo %s", path)
            return None
        return photo


def storage_path(
    entity_id: str, provider_namespace: str, reference_id: str, extension: str
) -> str:
    """Return the deterministic object path for a stored photo."""
    return f"{entity_id}/{provider_namespace}/{reference_id}.{extension}"


def extension_for(content_type: str | None) -> str:
    """Derive a file extension from a declared content type."""
    if not content_type or "/" not in content_type:
        return _DEFAULT_EXTENSION
    subtype = content_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
    if not subtype:
        return _DEFAULT_EXTENSION
    return subtype.split("+", 1)[0]


def _short(reference_id: str) -> str:
    return reference_id[:20]
