"""Supabase Storage adapter for durable photo objects."""

from dataclasses import dataclass
from typing import Protocol

from supabase import Client


class PhotoStorage(Protocol):
    """Interface for durable object storage."""

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Write an object, replacing any existing object at the same path."""

    def public_url(self, path: str) -> str:
        """Return the stable public URL for an object path."""


@dataclass
class SupabasePhotoStorage(PhotoStorage):
    """Supabase Storage bucket with upsert uploads."""

    client: Client
    bucket: str = "entity-images"

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Upload bytes to the bucket with upsert enabled."""
        self.client.storage.from_(self.bucket).upload(
            path=path,
            file=content,
            file_options={"content-type": content_type, "upsert": "true"},
        )

    def public_url(self, path: str) -> str:
        """Return the public URL for a stored object."""
        return self.client.storage.from_(self.bucket).get_public_url(path).rstrip("?")
