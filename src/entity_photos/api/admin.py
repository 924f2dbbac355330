"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from entity_photos.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/photo-cache/stats", dependencies=[Depends(require_admin)])
async def photo_cache_stats(request: Request) -> dict[str, object]:
    """Return aggregate statistics for the persisted photo cache."""
    container: AppContainer = request.app.state.container
    stats = container.photo_cache.stats()
    return {
        "totalCached": stats.total_cached,
        "expired": stats.expired,
        "entitiesCached": stats.entities_cached,
        "byQuality": stats.by_quality,
    }


@router.post("/photo-cache/purge", dependencies=[Depends(require_admin)])
async def purge_photo_cache(request: Request) -> dict[str, int]:
    """Delete expired rows from the persisted photo cache."""
    container: AppContainer = request.app.state.container
    return {"deleted": container.photo_cache.purge_expired()}
