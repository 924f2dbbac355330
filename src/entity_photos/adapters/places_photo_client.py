"""Places photo API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


@dataclass(frozen=True)
class DownloadedImage:
    """Raw image bytes and the declared content type."""

    content: bytes
    content_type: str | None


class PhotoProviderClient(Protocol):
    """Interface for downloading photos by provider reference."""

    namespace: str

    def build_photo_url(self, reference_id: str) -> str:
        """Return the canonical download URL for a reference."""

    async def download_photo(self, reference_id: str) -> DownloadedImage:
        """Download the full image body for a reference."""


@dataclass
class HttpxPlacesPhotoClient(PhotoProviderClient):
    """Downloads place photos at a single fixed width."""

    api_key: str
    http_client: httpx.AsyncClient
    base_url: str = "https://maps.googleapis.com/maps/api/place/photo"
    max_width: int = 1200
    namespace: str = "places"

    @classmethod
    def create(
        cls, api_key: str, base_url: str, max_width: int
    ) -> "HttpxPlacesPhotoClient":
        """Create a places photo client with a managed httpx session."""
        return cls(
            api_key=api_key,
            http_client=httpx.AsyncClient(),
            base_url=base_url,
            max_width=max_width,
        )

    def build_photo_url(self, reference_id: str) -> str:
        """Build the photo URL for the configured width."""
        request = httpx.Request(
            "GET",
            self.base_url,
            params={
                "maxwidth": self.max_width,
                "photoreference": reference_id,
                "key": self.api_key,
            },
        )
        return str(request.url)

    async def download_photo(self, reference_id: str) -> DownloadedImage:
        """Download a photo, following the provider's redirect to the image."""
        response = await self.http_client.get(
            self.build_photo_url(reference_id), follow_redirects=True, timeout=20
        )
        response.raise_for_status()
        return DownloadedImage(
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
