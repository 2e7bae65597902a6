"""Admin-triggered catalog refresh."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from models.api import SyncResponse, SyncStatusResponse
from models.database.user import User as DBUser
from services.auth import require_admin
from services.catalog.client import UpstreamClient
from services.sync.service import SyncService
from shared.exceptions import UpstreamError
from shared.utils import setup_logging

logger = setup_logging("sync-routes")

router = APIRouter()


def get_sync_client() -> UpstreamClient:
    return UpstreamClient()


def get_sync_service(
    db: Session = Depends(get_db),
    client: UpstreamClient = Depends(get_sync_client),
) -> SyncService:
    return SyncService(db, client)


def sync_failed(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"condition": False, "message": message})


@router.get("/genres", response_model=SyncResponse, tags=["Sync"])
async def sync_genres(
    admin: DBUser = Depends(require_admin),
    service: SyncService = Depends(get_sync_service),
):
    try:
        count = await service.sync_genres()
    except (UpstreamError, SQLAlchemyError) as e:
        service.db.rollback()
        logger.error(f"Genre sync error: {e}")
        return sync_failed("Failed to update genres")
    return SyncResponse(message="Genres updated", count=count)


@router.get("/trending", response_model=SyncResponse, tags=["Sync"])
async def sync_trending(
    admin: DBUser = Depends(require_admin),
    service: SyncService = Depends(get_sync_service),
):
    try:
        count = await service.sync_trending()
    except (UpstreamError, SQLAlchemyError) as e:
        service.db.rollback()
        logger.error(f"Trending sync error: {e}")
        return sync_failed("Failed to update trending")
    return SyncResponse(message="Trending updated", count=count)


@router.get("/status", response_model=SyncStatusResponse, tags=["Sync"])
async def sync_status(
    admin: DBUser = Depends(require_admin),
    service: SyncService = Depends(get_sync_service),
):
    state = service.status()
    return SyncStatusResponse(
        message="Sync status",
        last_genre_update=state.last_genre_update,
        last_trending_update=state.last_trending_update,
    )
