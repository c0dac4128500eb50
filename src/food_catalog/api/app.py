"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, Query, Request, Response, status

from food_catalog.api.admin import router as admin_router
from food_catalog.app_logging import configure_logging
from food_catalog.containers import AppContainer
from food_catalog.domain.errors import CatalogWriteFailure, FoodSearchUnavailable
from food_catalog.domain.foods import StoredFoodRecord

_SEARCH_CACHE_CONTROL = "private, max-age=30"


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

    @app.get("/foods/search")
    async def search_foods(
        request: Request,
        response: Response,
        q: str = "",
        limit: int | None = Query(default=None),
        x_user_id: UUID | None = Header(default=None),
    ) -> dict[str, object]:
        """Search the food catalog, ingesting provider results on a miss."""
        state_container: AppContainer = request.app.state.container
        try:
            foods = await state_container.food_search_service.search(
                q, limit=limit, user_id=x_user_id
            )
        except FoodSearchUnavailable as exc:
            logger.warning("Food search unavailable: query=%s", q)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Food providers are unavailable.",
            ) from exc
        except CatalogWriteFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Food catalog is temporarily unavailable.",
            ) from exc
        response.headers["Cache-Control"] = _SEARCH_CACHE_CONTROL
        return {"items": [_food_to_dict(food) for food in foods]}

    @app.get("/foods/barcode/{barcode}")
    async def lookup_barcode(barcode: str, request: Request) -> dict[str, object]:
        """Resolve a scanned barcode to a catalog food."""
        state_container: AppContainer = request.app.state.container
        try:
            food = await state_container.food_search_service.lookup_barcode(barcode)
        except FoodSearchUnavailable as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Barcode lookup is unavailable.",
            ) from exc
        except CatalogWriteFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Food catalog is temporarily unavailable.",
            ) from exc
        if food is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"item": _food_to_dict(food)}

    return app


def _food_to_dict(food: StoredFoodRecord) -> dict[str, object]:
    """Serialize a stored food for JSON responses."""
    payload = asdict(food)
    payload["id"] = str(food.id)
    payload["created_by_user_id"] = (
        str(food.created_by_user_id) if food.created_by_user_id else None
    )
    payload["created_at"] = food.created_at.isoformat() if food.created_at else None
    payload["updated_at"] = food.updated_at.isoformat() if food.updated_at else None
    return payload
