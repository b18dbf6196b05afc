import logging
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tracker_server.api_service.api_v1.deps import DBDep
from tracker_server.api_service.core.settings import settings
from tracker_server.api_service import schemas

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status", response_model=schemas.SystemStatus)
async def get_system_status(db: DBDep):
    """Service version and whether the database answers."""
    database_connected = True
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Database check failed: {e}")
        database_connected = False
    return schemas.SystemStatus(
        status="ok" if database_connected else "degraded",
        version=settings.VERSION,
        database_connected=database_connected,
    )
