"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from supabase import create_client

from entity_photos.adapters.places_photo_client import HttpxPlacesPhotoClient
from entity_photos.adapters.supabase_entity_repository import SupabaseEntityRepository
from entity_photos.adapters.supabase_photo_cache_repository import (
    SupabasePhotoCacheRepository,
)
from entity_photos.adapters.supabase_storage_client import SupabasePhotoStorage
from entity_photos.adapters.supabase_stored_photo_repository import (
    SupabaseStoredPhotoRepository,
)
from entity_photos.config import Settings
from entity_photos.services.cache import InMemoryCache
from entity_photos.services.jobs import MigrationJobRunner
from entity_photos.services.migration import StoreMigrator
from entity_photos.services.photo_cache import TwoTierPhotoCache
from entity_photos.services.photos import EntityPhotoService
from entity_photos.services.semaphore import Semaphore
from entity_photos.services.validation import PhotoValidator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    validator: PhotoValidator
    migrator: StoreMigrator
    photo_cache: TwoTierPhotoCache
    job_runner: MigrationJobRunner
    entity_photo_service: EntityPhotoService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    entity_repository = SupabaseEntityRepository(supabase_client)
    stored_photo_repository = SupabaseStoredPhotoRepository(supabase_client)
    photo_cache_repository = SupabasePhotoCacheRepository(supabase_client)
    storage = SupabasePhotoStorage(
        supabase_client, bucket=resolved_settings.storage_bucket
    )

    probe_client = httpx.AsyncClient()
    validator = PhotoValidator(
        http_client=probe_client,
        timeout_seconds=resolved_settings.validation_timeout_seconds,
        max_concurrency=resolved_settings.validation_max_concurrency,
    )
    places_client = HttpxPlacesPhotoClient.create(
        api_key=resolved_settings.places_api_key,
        base_url=resolved_settings.places_photo_base_url,
        max_width=resolved_settings.photo_max_width,
    )
    migrator = StoreMigrator(
        provider_client=places_client,
        storage=storage,
        repository=stored_photo_repository,
        semaphore=Semaphore(resolved_settings.download_max_concurrency),
        download_delay_seconds=resolved_settings.download_delay_seconds,
    )
    photo_cache = TwoTierPhotoCache(
        repository=photo_cache_repository,
        memory=InMemoryCache(),
        memory_ttl_seconds=resolved_settings.memory_cache_ttl_seconds,
        persisted_ttl_seconds=resolved_settings.persisted_cache_ttl_seconds,
    )
    job_runner = MigrationJobRunner(
        entity_repository=entity_repository,
        migrator=migrator,
        photo_cache=photo_cache,
        entity_delay_seconds=resolved_settings.entity_delay_seconds,
        max_attempts=resolved_settings.max_migration_attempts,
    )
    entity_photo_service = EntityPhotoService(
        photo_cache=photo_cache,
        validator=validator,
        migrator=migrator,
        entity_repository=entity_repository,
    )

    async def close_resources() -> None:
        await probe_client.aclose()
        await places_client.close()

    return AppContainer(
        settings=resolved_settings,
        validator=validator,
        migrator=migrator,
        photo_cache=photo_cache,
        job_runner=job_runner,
        entity_photo_service=entity_photo_service,
        close_resources=close_resources,
    )
