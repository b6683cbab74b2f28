"""
Dyehouse queue API routes.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.dyehouse import QueueInfo, BatchQueueEntry
from services.queue_position_service import get_queue_position_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/dyehouse", tags=["Dyehouse"])


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.get("/batches/{batch_id}/queue", response_model=Optional[QueueInfo])
async def get_batch_queue(batch_id: str):
    """
    Position of a batch in its vessel queue.

    Returns null when the batch is the only one for its vessel.

    Raises:
        404: Batch not found
    """
    try:
        service = get_queue_position_service()
        return service.get_batch_queue(batch_id)

    except Exception as e:
        return handle_error(e)


@router.get("/{dyehouse}/queue", response_model=list[BatchQueueEntry])
async def get_dyehouse_queue(dyehouse: str):
    """
    Every batch of a dyehouse with its queue position, grouped by vessel.
    """
    try:
        service = get_queue_position_service()
        return service.get_dyehouse_queue(dyehouse)

    except Exception as e:
        return handle_error(e)
