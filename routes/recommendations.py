"""
Recommendations API routes.

Ranks machines for a customer order by compatibility, availability
and continuity.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.recommendation import MachineRecommendations
from services.machine_recommendation_service import get_machine_recommendation_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


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

@router.get("/orders/{order_id}", response_model=MachineRecommendations)
async def get_machine_recommendations(
    order_id: str,
    customer_name: Optional[str] = Query(None, description="Client name if different from the order")
):
    """
    Rank machines for an order.

    Every machine is returned, incompatible ones included (flagged
    is_compatible=false with score <= -1000) so an operator can still
    override. selected_machine_id is the top machine when it is compatible.

    Raises:
        404: Order not found
    """
    try:
        service = get_machine_recommendation_service()
        return service.recommend_for_order(order_id, customer_name)

    except Exception as e:
        return handle_error(e)
