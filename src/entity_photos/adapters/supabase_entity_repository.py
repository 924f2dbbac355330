"""Supabase repository for photo-bearing entities."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from entity_photos.domain.photos import PendingEntity, PhotoReference
from entity_photos.services.jobs import EntityRepository

_COLUMNS = "id, name, metadata, photo_migration_attempts"


@dataclass
class SupabaseEntityRepository(EntityRepository):
    """Selects place entities whose provider photos are not yet stored."""

    client: Client
    entity_type: str = "place"
    api_source: str = "google_places"

    def list_pending_entities(
        self, limit: int, max_attempts: int
    ) -> list[PendingEntity]:
        """Return entities with provider references and incomplete photos."""
        response = (
            self.client.table("entities")
            .select(_COLUMNS)
            .eq("type", self.entity_type)
            .eq("api_source", self.api_source)
            .eq("photos_complete", False)
            .lt("photo_migration_attempts", max_attempts)
            .not_.is_("metadata->photo_references", "null")
            .order("created_at", desc=False)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def get_pending_entity(self, entity_id: str) -> PendingEntity | None:
        """Return an entity's provider references by id."""
        response = (
            self.client.table("entities")
            .select(_COLUMNS)
            .eq("id", entity_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def record_migration(self, entity_id: str, complete: bool, attempts: int) -> None:
        """Mark photos complete or bump the attempt counter."""
        self.client.table("entities").update(
            {
                "photos_complete": complete,
                "photo_migration_attempts": attempts,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("id", entity_id).execute()


def _parse_row(row: dict[str, object]) -> PendingEntity:
    metadata = row.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    raw_references = metadata.get("photo_references") or []
    references = [
        _parse_reference(item)
        for item in raw_references
        if isinstance(item, dict) and item.get("photo_reference")
    ]
    place_id = metadata.get("place_id")
    return PendingEntity(
        entity_id=str(row["id"]),
        provider_id=str(place_id) if place_id else None,
        references=references,
        migration_attempts=int(row.get("photo_migration_attempts") or 0),
    )


def _parse_reference(item: dict[str, object]) -> PhotoReference:
    attributions = item.get("html_attributions")
    attribution = None
    if isinstance(attributions, list) and attributions:
        attribution = str(attributions[0])
    return PhotoReference(
        reference_id=str(item["photo_reference"]),
        width=int(item.get("width") or 0),
        height=int(item.get("height") or 0),
        attribution=attribution,
    )
