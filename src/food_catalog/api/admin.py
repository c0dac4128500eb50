"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from food_catalog.config import parse_staples
from food_catalog.services.seeding import seed_global_catalog

if TYPE_CHECKING:
    from food_catalog.containers import AppContainer

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


@router.post("/seed", dependencies=[Depends(require_admin)])
async def seed_catalog(request: Request) -> dict[str, object]:
    """Seed the global catalog with curated staples."""
    container: AppContainer = request.app.state.container
    staples = parse_staples(container.settings.seed_staples)
    seeded = await seed_global_catalog(container.ingestion_pipeline, staples)
    container.food_search_service.invalidate()
    return {"seeded": seeded}


@router.post("/cache/clear", dependencies=[Depends(require_admin)])
async def clear_cache(request: Request) -> dict[str, str]:
    """Drop cached search results."""
    container: AppContainer = request.app.state.container
    container.food_search_service.invalidate()
    return {"status": "ok"}
