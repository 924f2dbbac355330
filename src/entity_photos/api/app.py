"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from entity_photos.api.admin import router as admin_router
from entity_photos.api.models import MigrateRequest, RunBatchRequest, ValidateRequest
from entity_photos.app_logging import configure_logging
from entity_photos.containers import AppContainer
from entity_photos.domain.photos import CachedPhoto, PhotoReference, StoredPhoto
from entity_photos.errors import MigrationJobError
from entity_photos.services.validation import quality_score


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/photos/migrate")
    async def migrate_photos(
        payload: MigrateRequest, request: Request
    ) -> dict[str, object]:
        """Copy an entity's provider photos into durable storage."""
        state_container: AppContainer = request.app.state.container
        references = [
            PhotoReference(
                reference_id=item.reference_id,
                width=item.width,
                height=item.height,
                attribution=item.attribution,
            )
            for item in payload.references
        ]
        result = await state_container.migrator.migrate(
            payload.entity_id, payload.provider_id, references
        )
        return {
            "success": True,
            "storedPhotos": [
                _serialize_stored_photo(photo) for photo in result.stored_photos
            ],
            "count": len(result.stored_photos),
            "total": result.attempted,
        }

    @app.post("/jobs/migrate-photos", response_model=None)
    async def run_migration_batch(
        request: Request, payload: RunBatchRequest | None = None
    ) -> dict[str, object] | JSONResponse:
        """Run one batch of the photo migration job."""
        state_container: AppContainer = request.app.state.container
        batch_size = payload.batch_size if payload else 10
        try:
            result = await state_container.job_runner.run_batch(batch_size)
        except MigrationJobError as exc:
            logger.exception("Photo migration job failed")
            return JSONResponse(
                status_code=500, content={"success": False, "error": str(exc)}
            )
        return {
            "success": True,
            "migrated": result.migrated_count,
            "failed": result.failed_count,
            "total": result.total_attempted,
            "hasMore": result.has_more,
        }

    @app.post("/photos/validate")
    async def validate_photos(
        payload: ValidateRequest, request: Request
    ) -> dict[str, object]:
        """Validate candidate photo URLs and score the valid ones."""
        state_container: AppContainer = request.app.state.container
        results = await state_container.validator.validate_many(
            payload.urls, max_concurrency=payload.max_concurrency
        )
        return {
            "results": {
                url: {
                    "isValid": result.is_valid,
                    "errorKind": result.error_kind,
                    "contentType": result.content_type,
                    "fileSizeBytes": result.file_size_bytes,
                    "qualityScore": quality_score(result),
                }
                for url, result in results.items()
            }
        }

    @app.get("/entities/{entity_id}/photos")
    async def entity_photos(entity_id: str, request: Request) -> dict[str, object]:
        """Return an entity's durable photos, best first."""
        state_container: AppContainer = request.app.state.container
        photos = await state_container.entity_photo_service.get_photos(entity_id)
        return {
            "entityId": entity_id,
            "photos": [_serialize_cached_photo(photo) for photo in photos],
        }

    return app


def _serialize_stored_photo(photo: StoredPhoto) -> dict[str, object]:
    return {
        "referenceId": photo.reference_id,
        "storedUrl": photo.stored_url,
        "width": photo.width,
        "height": photo.height,
        "uploadedAt": photo.uploaded_at.isoformat(),
    }


def _serialize_cached_photo(photo: CachedPhoto) -> dict[str, object]:
    return {
        "referenceId": photo.reference_id,
        "url": photo.stored_url,
        "width": photo.width,
        "height": photo.height,
        "qualityScore": photo.quality_score,
    }
