"""
Machine schedule API routes.

Queue edits return the saved machine. Pass expected_version to make the
write fail with 409 if someone else changed the machine in between.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.machine import (
    Machine,
    MachineSummary,
    PlanItemUpdate,
    QueueMoveRequest,
)
from services.schedule_service import get_schedule_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/machines", tags=["Machines"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
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


# ===================
# ROUTES
# ===================

@router.get("", response_model=list[MachineSummary])
async def list_machines():
    """
    List all machines with current job and free date.
    """
    try:
        service = get_schedule_service()
        return service.list_machines()

    except Exception as e:
        return handle_error(e)


@router.get("/{machine_id}", response_model=Machine)
async def get_machine(machine_id: str):
    """
    Get a machine with its queue.

    Queue dates are recomputed for display; nothing is saved.

    Raises:
        404: Machine not found
    """
    try:
        service = get_schedule_service()
        return service.get_machine(machine_id)

    except Exception as e:
        return handle_error(e)


@router.post("/{machine_id}/rechain", response_model=Machine)
async def rechain_machine(
    machine_id: str,
    expected_version: Optional[int] = Query(None, description="Version the client last saw")
):
    """
    Recompute and save queue dates (e.g. after the current job's rate changed).

    Raises:
        404: Machine not found
        409: Machine changed since expected_version
    """
    try:
        service = get_schedule_service()
        return service.rechain_machine(machine_id, expected_version)

    except Exception as e:
        return handle_error(e)


@router.post("/{machine_id}/queue/move", response_model=Machine)
async def move_plan(machine_id: str, data: QueueMoveRequest):
    """
    Move a queued plan to another position.

    Raises:
        404: Machine not found
        409: Machine changed since expected_version
        422: Index out of range
    """
    try:
        service = get_schedule_service()
        return service.move_plan(machine_id, data)

    except Exception as e:
        return handle_error(e)


@router.patch("/{machine_id}/queue/{index}", response_model=Machine)
async def update_plan(machine_id: str, index: int, data: PlanItemUpdate):
    """
    Edit a queued plan. Only provided fields are updated.

    Raises:
        404: Machine or plan not found
        409: Machine changed since expected_version
    """
    try:
        service = get_schedule_service()
        return service.update_plan(machine_id, index, data)

    except Exception as e:
        return handle_error(e)


@router.delete("/{machine_id}/queue/{index}", response_model=Machine)
async def remove_plan(
    machine_id: str,
    index: int,
    expected_version: Optional[int] = Query(None, description="Version the client last saw")
):
    """
    Remove a queued plan.

    Raises:
        404: Machine or plan not found
        409: Machine changed since expected_version
    """
    try:
        service = get_schedule_service()
        return service.remove_plan(machine_id, index, expected_version)

    except Exception as e:
        return handle_error(e)


@router.post("/{machine_id}/queue/{index}/activate", response_model=Machine)
async def activate_plan(
    machine_id: str,
    index: int,
    expected_version: Optional[int] = Query(None, description="Version the client last saw")
):
    """
    Start a queued plan as the machine's current job.

    Raises:
        404: Machine or plan not found
        409: Machine changed since expected_version
        422: Plan is a changeover entry
    """
    try:
        service = get_schedule_service()
        return service.activate_plan(machine_id, index, expected_version)

    except Exception as e:
        return handle_error(e)
