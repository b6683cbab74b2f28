"""
Unit tests for the machine store adapter.

Run: pytest tests/unit/test_machine_service.py -v
"""

import pytest

from models.machine import Machine, PlanItem, PlanKind
from services.machine_service import MachineService, serialize_queue
from exceptions import (
    MachineNotFoundError,
    QueueVersionConflictError,
    DatabaseError,
)
from tests.factories import MachineFactory, PlanItemFactory


# ===================
# READ TESTS
# ===================

class TestGetMachines:
    """Tests for get_all() and get_by_id()"""

    def test_get_all(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", MachineFactory.create_batch(3))
        service = MachineService()

        machines = service.get_all()

        assert len(machines) == 3
        assert all(isinstance(m, Machine) for m in machines)

    def test_get_all_empty(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [])
        service = MachineService()

        assert service.get_all() == []

    def test_get_by_id(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [
            MachineFactory.create(id="m-1", name="Mayer 1", gauge=24.0),
        ])
        service = MachineService()

        machine = service.get_by_id("m-1")

        assert machine.name == "Mayer 1"
        assert machine.gauge == "24"

    def test_get_by_id_not_found(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [])
        service = MachineService()

        with pytest.raises(MachineNotFoundError) as exc_info:
            service.get_by_id("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "MACHINE_NOT_FOUND"

    def test_database_error(self, mock_db, mock_supabase):
        mock_supabase.set_table_error("machines", RuntimeError("connection reset"))
        service = MachineService()

        with pytest.raises(DatabaseError):
            service.get_all()

    def test_malformed_queue_entries_default(self, mock_db, mock_supabase):
        """Queue entries with missing or junk fields still load."""
        mock_supabase.set_table_data("machines", [
            MachineFactory.create(id="m-1", queue=[
                {"fabric": "Rib", "quantity": "abc", "kind": None},
                {"kind": "SETTINGS", "days": "2"},
            ]),
        ])
        service = MachineService()

        machine = service.get_by_id("m-1")

        assert machine.queue[0].kind == PlanKind.PRODUCTION
        assert machine.queue[0].quantity == 0
        assert machine.queue[1].is_changeover
        assert machine.queue[1].days == 2


# ===================
# QUEUE WRITE TESTS
# ===================

class TestReplaceQueue:
    """Tests for replace_queue()"""

    def test_writes_queue_and_bumps_version(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [
            MachineFactory.create(id="m-1", version=3),
        ])
        service = MachineService()
        queue = [PlanItem(**PlanItemFactory.create(fabric="Rib", quantity=200))]

        machine = service.replace_queue("m-1", queue, expected_version=3)

        assert machine.version == 4
        assert machine.queue[0].fabric == "Rib"
        stored = mock_supabase.rows("machines")[0]
        assert stored["version"] == 4
        assert stored["queue"][0]["kind"] == "PRODUCTION"

    def test_extra_fields_written_together(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [
            MachineFactory.create(id="m-1", version=1),
        ])
        service = MachineService()

        service.replace_queue("m-1", [], 1, fields={"status": "Working", "fabric": "Rib"})

        update = mock_supabase.table("machines").updates[0]
        assert update["status"] == "Working"
        assert update["fabric"] == "Rib"
        assert update["queue"] == []

    def test_stale_version_conflicts(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [
            MachineFactory.create(id="m-1", version=5),
        ])
        service = MachineService()

        with pytest.raises(QueueVersionConflictError) as exc_info:
            service.replace_queue("m-1", [], expected_version=4)

        assert exc_info.value.status_code == 409
        assert mock_supabase.rows("machines")[0]["version"] == 5

    def test_second_writer_loses(self, mock_db, mock_supabase):
        """Two edits from the same snapshot: only the first is applied."""
        mock_supabase.set_table_data("machines", [
            MachineFactory.create(id="m-1", version=1),
        ])
        service = MachineService()
        first = [PlanItem(**PlanItemFactory.create(fabric="Rib"))]
        second = [PlanItem(**PlanItemFactory.create(fabric="Fleece"))]

        service.replace_queue("m-1", first, expected_version=1)
        with pytest.raises(QueueVersionConflictError):
            service.replace_queue("m-1", second, expected_version=1)

        assert mock_supabase.rows("machines")[0]["queue"][0]["fabric"] == "Rib"

    def test_missing_machine(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("machines", [])
        service = MachineService()

        with pytest.raises(MachineNotFoundError):
            service.replace_queue("missing", [], expected_version=0)

    def test_database_error(self, mock_db, mock_supabase):
        mock_supabase.set_table_error("machines", RuntimeError("timeout"))
        service = MachineService()

        with pytest.raises(DatabaseError):
            service.replace_queue("m-1", [], expected_version=0)


class TestSerializeQueue:
    """Tests for serialize_queue()"""

    def test_dates_and_kind_as_text(self, today):
        item = PlanItem(kind="SETTINGS", days=2, start_date=today, end_date=today)

        row = serialize_queue([item])[0]

        assert row["kind"] == "SETTINGS"
        assert row["start_date"] == "2025-03-01"
