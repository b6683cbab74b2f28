"""
Fabric catalog store adapter.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.fabric import FabricDefinition
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class FabricService:
    """Read access to the fabric catalog."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "fabrics"

    def get_all(self) -> list[FabricDefinition]:
        """
        Get every fabric definition.

        Rows without a name are skipped, they can never be matched.

        Returns:
            List of FabricDefinition
        """
        logger.debug("getting_fabrics")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("name")
                .execute()
            )
        except Exception as e:
            logger.error("get_fabrics_failed", error=str(e))
            raise DatabaseError("select", str(e))

        fabrics = [
            FabricDefinition(**row)
            for row in result.data
            if row.get("name")
        ]

        skipped = len(result.data) - len(fabrics)
        if skipped:
            logger.warning("fabrics_without_name_skipped", count=skipped)

        logger.info("fabrics_retrieved", count=len(fabrics))

        return fabrics


# Singleton instance for convenience
_fabric_service: Optional[FabricService] = None

def get_fabric_service() -> FabricService:
    """Get or create FabricService instance."""
    global _fabric_service
    if _fabric_service is None:
        _fabric_service = FabricService()
    return _fabric_service
