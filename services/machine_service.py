"""
Machine store adapter.

Reads machine snapshots and writes a machine's queue back as a whole.
The write is a compare-and-swap on the machine's version so that two
operators editing the same machine cannot silently overwrite each other.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from models.machine import Machine, PlanItem
from exceptions import (
    MachineNotFoundError,
    QueueVersionConflictError,
    DatabaseError
)

logger = structlog.get_logger(__name__)


def serialize_queue(queue: list[PlanItem]) -> list[dict]:
    """Queue as stored in the machine document (ISO dates, kind values)."""
    return [item.model_dump(mode="json") for item in queue]


class MachineService:
    """
    Machine data access.

    Machines are read as full snapshots (current job plus embedded queue).
    The only write is replace_queue().
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "machines"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self) -> list[Machine]:
        """
        Get all machines ordered by name.

        Returns:
            List of Machine snapshots
        """
        logger.debug("getting_machines")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("name")
                .execute()
            )

            machines = [Machine(**row) for row in result.data]

            logger.info("machines_retrieved", count=len(machines))

            return machines

        except Exception as e:
            logger.error("get_machines_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, machine_id: str) -> Machine:
        """
        Get a single machine by ID.

        Args:
            machine_id: Machine ID

        Returns:
            Machine

        Raises:
            MachineNotFoundError: If machine doesn't exist
        """
        logger.debug("getting_machine", machine_id=machine_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", machine_id)
                .execute()
            )

            if not result.data:
                raise MachineNotFoundError(machine_id)

            return Machine(**result.data[0])

        except MachineNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "get_machine_failed",
                machine_id=machine_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def replace_queue(
        self,
        machine_id: str,
        queue: list[PlanItem],
        expected_version: int,
        fields: Optional[dict[str, Any]] = None
    ) -> Machine:
        """
        Replace a machine's queue if nobody changed it since it was read.

        Args:
            machine_id: Machine ID
            queue: New queue (already chained)
            expected_version: Version of the snapshot the queue was built from
            fields: Extra machine fields to write in the same update
                (used when a plan becomes the current job)

        Returns:
            Updated Machine

        Raises:
            MachineNotFoundError: If machine doesn't exist
            QueueVersionConflictError: If the stored version moved on
        """
        logger.info(
            "replacing_machine_queue",
            machine_id=machine_id,
            queue_length=len(queue),
            expected_version=expected_version
        )

        update_data = {
            **(fields or {}),
            "queue": serialize_queue(queue),
            "version": expected_version + 1,
        }

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", machine_id)
                .eq("version", expected_version)
                .execute()
            )
        except Exception as e:
            logger.error(
                "replace_machine_queue_failed",
                machine_id=machine_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        if not result.data:
            # Either the machine is gone or the version moved on
            self.get_by_id(machine_id)
            logger.warning(
                "machine_queue_version_conflict",
                machine_id=machine_id,
                expected_version=expected_version
            )
            raise QueueVersionConflictError(machine_id, expected_version)

        machine = Machine(**result.data[0])

        logger.info(
            "machine_queue_replaced",
            machine_id=machine_id,
            version=machine.version
        )

        return machine


# Singleton instance for convenience
_machine_service: Optional[MachineService] = None

def get_machine_service() -> MachineService:
    """Get or create MachineService instance."""
    global _machine_service
    if _machine_service is None:
        _machine_service = MachineService()
    return _machine_service
