"""
Queue position for batches sharing a dyehouse vessel.

Batches with the same capacity key (dyehouse + vessel) wait in formation
date order. For a given batch this tells the operator how many are ahead
and how many of those are already past the dyeing checkpoint.
"""

from typing import Optional, Iterable
from datetime import date
import structlog

from config.scheduling import get_scheduling_config
from services.dyeing_batch_service import get_dyeing_batch_service
from models.dyehouse import (
    DyeingBatch,
    DyehouseStage,
    QueueInfo,
    BatchQueueEntry,
    stage_index,
)

logger = structlog.get_logger(__name__)


def _formation_sort_key(batch: DyeingBatch) -> tuple[int, date]:
    # Batches without a formation date go last
    if batch.formation_date is None:
        return (1, date.min)
    return (0, batch.formation_date)


def queue_info(
    jobs: Iterable[DyeingBatch],
    job: DyeingBatch,
    reference_stage: Optional[DyehouseStage] = None
) -> Optional[QueueInfo]:
    """
    Position of a batch among batches sharing its vessel.

    Args:
        jobs: All known batches
        job: Batch to locate
        reference_stage: Checkpoint; batches past it count as finished
            (default from config, DYEING)

    Returns:
        QueueInfo, or None when the batch is alone in its group
        (or missing from it)
    """
    if reference_stage is None:
        reference_stage = DyehouseStage(get_scheduling_config().dyeing_reference_stage)

    key = job.capacity_key
    group = sorted(
        (other for other in jobs if other.capacity_key == key),
        key=_formation_sort_key
    )

    total = len(group)
    if total <= 1:
        return None

    index = next((i for i, other in enumerate(group) if other.id == job.id), None)
    if index is None:
        return None

    checkpoint = stage_index(reference_stage)
    finished_before = sum(
        1 for other in group[:index]
        if stage_index(other.stage) > checkpoint
    )

    return QueueInfo(
        position=index + 1,
        total=total,
        finished_before=finished_before,
        still_ahead_count=index - finished_before,
    )


def queue_overview(
    jobs: Iterable[DyeingBatch],
    dyehouse: str,
    reference_stage: Optional[DyehouseStage] = None
) -> list[BatchQueueEntry]:
    """Queue info for every batch of one dyehouse, grouped by vessel."""
    jobs = list(jobs)
    wanted = dyehouse.strip().lower()

    entries = [
        BatchQueueEntry(
            batch=batch,
            vessel=batch.vessel_label,
            queue=queue_info(jobs, batch, reference_stage),
        )
        for batch in jobs
        if batch.dyehouse.strip().lower() == wanted
    ]
    entries.sort(key=lambda e: (e.vessel.lower(), e.queue.position if e.queue else 0))
    return entries


class QueuePositionService:
    """Loads dyeing batches and computes queue positions."""

    def __init__(self):
        self.batch_service = get_dyeing_batch_service()
        self.reference_stage = DyehouseStage(get_scheduling_config().dyeing_reference_stage)

    def get_batch_queue(self, batch_id: str) -> Optional[QueueInfo]:
        """
        Queue position of one batch.

        Raises:
            DyeingBatchNotFoundError: If batch doesn't exist
        """
        batch = self.batch_service.get_by_id(batch_id)
        batches = self.batch_service.get_all(dyehouse=batch.dyehouse or None)

        info = queue_info(batches, batch, self.reference_stage)

        logger.info(
            "batch_queue_position",
            batch_id=batch_id,
            dyehouse=batch.dyehouse,
            vessel=batch.vessel_label,
            position=info.position if info else None,
            total=info.total if info else None
        )

        return info

    def get_dyehouse_queue(self, dyehouse: str) -> list[BatchQueueEntry]:
        """Queue info for every batch in a dyehouse."""
        batches = self.batch_service.get_all(dyehouse=dyehouse)
        entries = queue_overview(batches, dyehouse, self.reference_stage)

        logger.info(
            "dyehouse_queue_built",
            dyehouse=dyehouse,
            batches=len(entries)
        )

        return entries


# Singleton instance for convenience
_queue_position_service: Optional[QueuePositionService] = None

def get_queue_position_service() -> QueuePositionService:
    """Get or create QueuePositionService instance."""
    global _queue_position_service
    if _queue_position_service is None:
        _queue_position_service = QueuePositionService()
    return _queue_position_service
