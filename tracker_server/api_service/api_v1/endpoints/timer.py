import logging
from fastapi import APIRouter, HTTPException, status

from tracker_server.api_service import schemas
from tracker_server.api_service.api_v1.deps import DBDep, OwnerDep
from tracker_server.api_service.core import sources

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=schemas.TimerResponse)
async def get_timer(db: DBDep, owner_id: OwnerDep):
    """
    The running timer, or `{"data": null}` when none is running.

    This record is the only source of truth; clients may cache it but must
    replace their copy with this one on load.
    """
    session = await sources.get_active_timer(db, owner_id)
    return schemas.TimerResponse(data=schemas.TimerSession.model_validate(session) if session else None)


@router.post("", response_model=schemas.TimerResponse, status_code=status.HTTP_201_CREATED)
async def start_timer(
    timer_in: schemas.TimerStart,
    db: DBDep,
    owner_id: OwnerDep,
):
    try:
        session = await sources.start_timer(db, owner_id, timer_in.start_time)
    except sources.ActiveTimerExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.info(f"Timer started at {timer_in.start_time}")
    return schemas.TimerResponse(data=schemas.TimerSession.model_validate(session))


@router.delete("")
async def stop_timer(db: DBDep, owner_id: OwnerDep):
    stopped = await sources.stop_timer(db, owner_id)
    if not stopped:
        logger.info("Stop requested with no running timer.")
    return {"success": True}
