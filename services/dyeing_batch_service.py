"""
Dyeing batch store adapter.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.dyehouse import DyeingBatch
from exceptions import DyeingBatchNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class DyeingBatchService:
    """Read access to dyeing batches."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "dyeing_batches"

    def get_all(self, dyehouse: Optional[str] = None) -> list[DyeingBatch]:
        """
        Get dyeing batches, optionally for one dyehouse.

        Args:
            dyehouse: Dyehouse name filter

        Returns:
            List of DyeingBatch
        """
        logger.debug("getting_dyeing_batches", dyehouse=dyehouse)

        try:
            query = self.db.table(self.table).select("*")
            if dyehouse:
                query = query.eq("dyehouse", dyehouse)
            result = query.execute()

            batches = [DyeingBatch(**row) for row in result.data]

            logger.info(
                "dyeing_batches_retrieved",
                dyehouse=dyehouse,
                count=len(batches)
            )

            return batches

        except Exception as e:
            logger.error("get_dyeing_batches_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, batch_id: str) -> DyeingBatch:
        """
        Get a single batch by ID.

        Raises:
            DyeingBatchNotFoundError: If batch doesn't exist
        """
        logger.debug("getting_dyeing_batch", batch_id=batch_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", batch_id)
                .execute()
            )

            if not result.data:
                raise DyeingBatchNotFoundError(batch_id)

            return DyeingBatch(**result.data[0])

        except DyeingBatchNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "get_dyeing_batch_failed",
                batch_id=batch_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))


# Singleton instance for convenience
_dyeing_batch_service: Optional[DyeingBatchService] = None

def get_dyeing_batch_service() -> DyeingBatchService:
    """Get or create DyeingBatchService instance."""
    global _dyeing_batch_service
    if _dyeing_batch_service is None:
        _dyeing_batch_service = DyeingBatchService()
    return _dyeing_batch_service
