"""
Order planning API routes.

Preview and assign an order onto a machine queue, and see how much of an
order is already planned.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.machine import Machine
from models.order import (
    AssignOrderRequest,
    OrderAllocationStatus,
    SchedulePreview,
)
from services.schedule_service import get_schedule_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/planning", tags=["Planning"])


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


@router.get("/orders/{order_id}/allocation", response_model=OrderAllocationStatus)
async def get_order_allocation(
    order_id: str,
    customer_name: Optional[str] = Query(None, description="Client name if different from the order")
):
    """
    Planned vs unplanned quantity of an order, with the plans found.

    Raises:
        404: Order not found
    """
    try:
        service = get_schedule_service()
        return service.get_order_allocation(order_id, customer_name)

    except Exception as e:
        return handle_error(e)


@router.post("/orders/{order_id}/preview", response_model=SchedulePreview)
async def preview_order(order_id: str, data: AssignOrderRequest):
    """
    Show the machine queue as it would be with the order inserted.

    Changeover entries are added where the fabric switches. Nothing is saved.

    Raises:
        404: Order or machine not found
        422: Order already fully planned
    """
    try:
        service = get_schedule_service()
        return service.preview_order(order_id, data)

    except Exception as e:
        return handle_error(e)


@router.post("/orders/{order_id}/assign", response_model=Machine)
async def assign_order(order_id: str, data: AssignOrderRequest):
    """
    Insert the order into the machine queue and save it.

    Raises:
        404: Order or machine not found
        409: Machine changed since expected_version
        422: Order already fully planned
    """
    try:
        service = get_schedule_service()
        return service.assign_order(order_id, data)

    except Exception as e:
        return handle_error(e)
