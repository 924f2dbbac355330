"""Supabase-backed stored photo repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from entity_photos.domain.photos import StoredPhoto
from entity_photos.services.migration import StoredPhotoRepository

_COLUMNS = (
    "entity_id, reference_id, stored_url, width, height, "
    "content_type, file_size_bytes, uploaded_at"
)


@dataclass
class SupabaseStoredPhotoRepository(StoredPhotoRepository):
    """Supabase implementation for stored photo rows."""

    client: Client

    def upsert_stored_photo(self, photo: StoredPhoto) -> None:
        """Upsert the row for a stored photo."""
        response = (
            self.client.table("stored_photos")
            .upsert(
                {
                    "entity_id": photo.entity_id,
                    "reference_id": photo.reference_id,
                    "stored_url": photo.stored_url,
                    "width": photo.width,
                    "height": photo.height,
                    "content_type": photo.content_type,
                    "file_size_bytes": photo.file_size_bytes,
                    "uploaded_at": photo.uploaded_at.isoformat(),
                },
                on_conflict="entity_id,reference_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to upsert stored photo")

    def list_stored_photos(self, entity_id: str) -> list[StoredPhoto]:
        """Return stored photos for an entity, newest first."""
        response = (
            self.client.table("stored_photos")
            .select(_COLUMNS)
            .eq("entity_id", entity_id)
            .order("uploaded_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> StoredPhoto:
    file_size = row.get("file_size_bytes")
    return StoredPhoto(
        entity_id=str(row["entity_id"]),
        reference_id=str(row["reference_id"]),
        stored_url=str(row["stored_url"]),
        width=int(row.get("width") or 0),
        height=int(row.get("height") or 0),
        uploaded_at=datetime.fromisoformat(str(row["uploaded_at"])),
        content_type=row.get("content_type"),
        file_size_bytes=int(file_size) if file_size is not None else None,
    )
