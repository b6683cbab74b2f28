"""
Unit tests for dyehouse queue positions.

Run: pytest tests/unit/test_queue_position_service.py -v
"""

import pytest
from datetime import date

from models.dyehouse import DyeingBatch, DyehouseStage
from services.queue_position_service import (
    QueuePositionService,
    queue_info,
    queue_overview,
)
from exceptions import DyeingBatchNotFoundError
from tests.factories import DyeingBatchFactory


D1 = date(2025, 2, 1)
D2 = date(2025, 2, 5)
D3 = date(2025, 2, 9)


def batch(**kwargs) -> DyeingBatch:
    return DyeingBatch(**DyeingBatchFactory.create(**kwargs))


# ===================
# QUEUE INFO TESTS
# ===================

class TestQueueInfo:
    """Tests for queue_info()"""

    def test_middle_of_three(self):
        """D1 < D2 < D3: the D2 batch is 2nd of 3."""
        jobs = [
            batch(id="c", formation_date=D3),
            batch(id="a", formation_date=D1),
            batch(id="b", formation_date=D2),
        ]

        info = queue_info(jobs, jobs[2])

        assert info.position == 2
        assert info.total == 3
        assert info.finished_before == 0
        assert info.still_ahead_count == 1

    def test_alone_returns_none(self):
        only = batch(formation_date=D1)
        assert queue_info([only], only) is None

    def test_job_missing_from_group_returns_none(self):
        jobs = [batch(id="a", formation_date=D1), batch(id="b", formation_date=D2)]
        outsider = batch(id="z", formation_date=D3)

        assert queue_info(jobs, outsider) is None

    def test_groups_by_dyehouse_and_vessel(self):
        """Other vessels and other dyehouses don't count."""
        target = batch(id="t", dyehouse="Delta", planned_capacity=400, formation_date=D2)
        jobs = [
            batch(id="a", dyehouse="Delta", planned_capacity=400, formation_date=D1),
            batch(id="b", dyehouse="Delta", planned_capacity=800, formation_date=D1),
            batch(id="c", dyehouse="Nile", planned_capacity=400, formation_date=D1),
            target,
        ]

        info = queue_info(jobs, target)

        assert info.position == 2
        assert info.total == 2

    def test_machine_name_used_without_capacity(self):
        target = batch(id="t", planned_capacity=None, machine="Jet 3", formation_date=D2)
        jobs = [
            batch(id="a", planned_capacity=None, machine=" jet 3", formation_date=D1),
            batch(id="b", planned_capacity=None, machine="Jet 4", formation_date=D1),
            target,
        ]

        info = queue_info(jobs, target)

        assert (info.position, info.total) == (2, 2)

    def test_missing_date_sorts_last(self):
        undated = batch(id="u", formation_date=None)
        jobs = [undated, batch(id="a", formation_date=D2), batch(id="b", formation_date=D1)]

        info = queue_info(jobs, undated)

        assert info.position == 3

    def test_same_date_keeps_input_order(self):
        jobs = [batch(id="a", formation_date=D1), batch(id="b", formation_date=D1)]

        assert queue_info(jobs, jobs[1]).position == 2

    def test_finished_before_counts_batches_past_dyeing(self):
        jobs = [
            batch(id="a", formation_date=D1, stage="FINISHING"),
            batch(id="b", formation_date=D1, stage="DYEING"),
            batch(id="c", formation_date=D2, stage="RECEIVED"),
            batch(id="t", formation_date=D3, stage="STORE_RAW"),
        ]

        info = queue_info(jobs, jobs[3])

        assert info.position == 4
        assert info.finished_before == 2
        assert info.still_ahead_count == 1

    def test_reference_stage_configurable(self):
        jobs = [
            batch(id="a", formation_date=D1, stage="DYEING"),
            batch(id="t", formation_date=D2),
        ]

        info = queue_info(jobs, jobs[1], reference_stage=DyehouseStage.STORE_RAW)

        assert info.finished_before == 1
        assert info.still_ahead_count == 0

    def test_unknown_stage_not_finished(self):
        jobs = [
            batch(id="a", formation_date=D1, stage="LOST"),
            batch(id="t", formation_date=D2),
        ]

        assert queue_info(jobs, jobs[1]).finished_before == 0


class TestQueueOverview:
    """Tests for queue_overview()"""

    def test_only_requested_dyehouse(self):
        jobs = [
            batch(id="a", dyehouse="Delta", formation_date=D2),
            batch(id="b", dyehouse="delta ", formation_date=D1),
            batch(id="c", dyehouse="Nile", formation_date=D1),
        ]

        entries = queue_overview(jobs, "Delta")

        assert [e.batch.id for e in entries] == ["b", "a"]
        assert entries[0].vessel == "400kg"
        assert entries[0].queue.position == 1


# ===================
# SERVICE TESTS
# ===================

class TestQueuePositionService:
    """Tests for QueuePositionService"""

    def test_get_batch_queue(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("dyeing_batches", [
            DyeingBatchFactory.create(id="a", formation_date=D1),
            DyeingBatchFactory.create(id="b", formation_date=D2),
        ])
        service = QueuePositionService()

        info = service.get_batch_queue("b")

        assert info.position == 2
        assert info.total == 2

    def test_batch_not_found(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("dyeing_batches", [])
        service = QueuePositionService()

        with pytest.raises(DyeingBatchNotFoundError) as exc_info:
            service.get_batch_queue("missing")

        assert exc_info.value.status_code == 404
