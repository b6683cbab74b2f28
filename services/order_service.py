"""
Customer order store adapter.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.order import Order
from exceptions import OrderNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class OrderService:
    """Read access to customer orders."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "orders"

    def get_by_id(self, order_id: str) -> Order:
        """
        Get a single order by ID.

        Args:
            order_id: Order ID

        Returns:
            Order

        Raises:
            OrderNotFoundError: If order doesn't exist
        """
        logger.debug("getting_order", order_id=order_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", order_id)
                .execute()
            )

            if not result.data:
                raise OrderNotFoundError(order_id)

            return Order(**result.data[0])

        except OrderNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "get_order_failed",
                order_id=order_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))


# Singleton instance for convenience
_order_service: Optional[OrderService] = None

def get_order_service() -> OrderService:
    """Get or create OrderService instance."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
