"""Supabase-backed persisted photo cache."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from entity_photos.domain.photos import CachedPhoto
from entity_photos.services.photo_cache import PhotoCacheRepository

_COLUMNS = (
    "entity_id, reference_id, stored_url, width, height, quality_score, "
    "cached_at, fetch_count, last_accessed_at"
)


@dataclass
class SupabasePhotoCacheRepository(PhotoCacheRepository):
    """Supabase implementation of the long-lived cache tier."""

    client: Client

    def list_entity_photos(self, entity_id: str) -> list[CachedPhoto]:
        """Return cached rows for an entity."""
        response = (
            self.client.table("photo_cache")
            .select(_COLUMNS)
            .eq("entity_id", entity_id)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def replace_entity_photos(
        self, entity_id: str, photos: list[CachedPhoto]
    ) -> None:
        """Upsert the current rows, then drop rows for other references."""
        if photos:
            response = (
                self.client.table("photo_cache")
                .upsert(
                    [_serialize(photo) for photo in photos],
                    on_conflict="entity_id,reference_id",
                )
                .execute()
            )
            if not response.data:
                raise RuntimeError("Failed to upsert cached photos")
            keep = [photo.reference_id for photo in photos]
            self.client.table("photo_cache").delete().eq(
                "entity_id", entity_id
            ).not_.in_("reference_id", keep).execute()
            return
        self.client.table("photo_cache").delete().eq("entity_id", entity_id).execute()

    def record_access(
        self, entity_id: str, photos: list[CachedPhoto], accessed_at: datetime
    ) -> None:
        """Bump each row's fetch count from the values just read."""
        for photo in photos:
            self.client.table("photo_cache").update(
                {
                    "fetch_count": photo.fetch_count + 1,
                    "last_accessed_at": accessed_at.isoformat(),
                }
            ).eq("entity_id", entity_id).eq(
                "reference_id", photo.reference_id
            ).execute()

    def list_cache_rows(self) -> list[CachedPhoto]:
        """Return all cached rows."""
        response = self.client.table("photo_cache").select(_COLUMNS).execute()
        return [_parse_row(row) for row in response.data or []]

    def delete_cached_before(self, cutoff: datetime) -> int:
        """Delete rows cached before the cutoff."""
        response = (
            self.client.table("photo_cache")
            .delete()
            .lt("cached_at", cutoff.isoformat())
            .execute()
        )
        return len(response.data or [])


def _serialize(photo: CachedPhoto) -> dict[str, object]:
    return {
        "entity_id": photo.entity_id,
        "reference_id": photo.reference_id,
        "stored_url": photo.stored_url,
        "width": photo.width,
        "height": photo.height,
        "quality_score": photo.quality_score,
        "cached_at": photo.cached_at.isoformat(),
    }


def _parse_row(row: dict[str, object]) -> CachedPhoto:
    last_accessed_at = row.get("last_accessed_at")
    return CachedPhoto(
        entity_id=str(row["entity_id"]),
        reference_id=str(row["reference_id"]),
        stored_url=str(row["stored_url"]),
        width=int(row.get("width") or 0),
        height=int(row.get("height") or 0),
        quality_score=int(row.get("quality_score") or 0),
        cached_at=datetime.fromisoformat(str(row["cached_at"])),
        fetch_count=int(row.get("fetch_count") or 0),
        last_accessed_at=(
            datetime.fromisoformat(str(last_accessed_at)) if last_accessed_at else None
        ),
    )
