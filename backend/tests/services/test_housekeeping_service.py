"""
Tests for resortpms/services/housekeeping_service.py
Covers: start/complete/inspect pipeline, one open task per room, room gating,
        awaiting list, clearing the log
"""
import pytest

from resortpms.exceptions import (
    InvalidTransitionError, NotFoundError, PermissionDeniedError, RoomUnavailableError,
)
from resortpms.models.ontology import CleaningTask, CleaningStatus, RoomStatus
from resortpms.models.schemas import CleaningStart
from resortpms.services.housekeeping_service import HousekeepingService

from factories import make_room, noop


def _start(db, room, actor, publisher=noop, assignee="maid-1"):
    return HousekeepingService(db, publisher).start_cleaning(
        CleaningStart(room_id=room.id, assignee=assignee), actor
    )


class TestPipeline:

    def test_full_pipeline_releases_room(self, db_session, housekeeper, supervisor, events):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        svc = HousekeepingService(db_session, events.append)

        task = svc.start_cleaning(CleaningStart(room_id=room.id, assignee="maid-1"), housekeeper)
        assert task.status == CleaningStatus.IN_PROGRESS
        assert task.started_at is not None
        db_session.refresh(room)
        assert room.status == RoomStatus.CLEANING

        task = svc.complete_cleaning(task.id, housekeeper)
        assert task.status == CleaningStatus.COMPLETED
        db_session.refresh(room)
        assert room.status == RoomStatus.CLEANING

        task = svc.inspect_cleaning(task.id, supervisor)
        assert task.status == CleaningStatus.INSPECTED
        assert task.inspected_by == "sup-1"
        db_session.refresh(room)
        assert room.status == RoomStatus.AVAILABLE

        assert [e.event_type for e in events] == [
            "cleaning.started", "cleaning.completed", "cleaning.inspected", "room.status_changed",
        ]

    def test_start_requires_cleaning_room(self, db_session, housekeeper):
        room = make_room(db_session)
        with pytest.raises(RoomUnavailableError):
            _start(db_session, room, housekeeper)
        assert db_session.query(CleaningTask).count() == 0

    def test_one_open_task_per_room(self, db_session, housekeeper):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        _start(db_session, room, housekeeper)

        with pytest.raises(InvalidTransitionError):
            _start(db_session, room, housekeeper, assignee="maid-2")
        assert db_session.query(CleaningTask).count() == 1

    def test_inspect_before_complete_rejected(self, db_session, housekeeper, supervisor):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        task = _start(db_session, room, housekeeper)

        with pytest.raises(InvalidTransitionError):
            HousekeepingService(db_session, noop).inspect_cleaning(task.id, supervisor)
        db_session.refresh(room)
        db_session.refresh(task)
        assert room.status == RoomStatus.CLEANING
        assert task.status == CleaningStatus.IN_PROGRESS

    def test_housekeeper_cannot_inspect(self, db_session, housekeeper):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        svc = HousekeepingService(db_session, noop)
        task = _start(db_session, room, housekeeper)
        svc.complete_cleaning(task.id, housekeeper)

        with pytest.raises(PermissionDeniedError):
            svc.inspect_cleaning(task.id, housekeeper)

    def test_inspection_leaves_maintenance_room(self, db_session, housekeeper, supervisor):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        svc = HousekeepingService(db_session, noop)
        task = _start(db_session, room, housekeeper)
        svc.complete_cleaning(task.id, housekeeper)
        room.status = RoomStatus.MAINTENANCE
        db_session.commit()

        svc.inspect_cleaning(task.id, supervisor)
        db_session.refresh(room)
        assert room.status == RoomStatus.MAINTENANCE

    def test_unknown_task(self, db_session, housekeeper):
        with pytest.raises(NotFoundError):
            HousekeepingService(db_session, noop).complete_cleaning(99, housekeeper)


class TestLog:

    def test_rooms_awaiting_cleaning(self, db_session, housekeeper):
        waiting = make_room(db_session, "W1", status=RoomStatus.CLEANING)
        assigned = make_room(db_session, "W2", status=RoomStatus.CLEANING)
        make_room(db_session, "W3")
        _start(db_session, assigned, housekeeper)

        rooms = HousekeepingService(db_session).get_rooms_awaiting_cleaning()
        assert [r.id for r in rooms] == [waiting.id]

    def test_gating_task(self, db_session, housekeeper):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        task = _start(db_session, room, housekeeper)
        svc = HousekeepingService(db_session)

        assert svc.get_gating_task(room.id).id == task.id
        assert svc.get_tasks(room_id=room.id, status=CleaningStatus.IN_PROGRESS)[0].id == task.id

    def test_clear_unresolved_task_rejected(self, db_session, housekeeper):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        svc = HousekeepingService(db_session, noop)
        task = _start(db_session, room, housekeeper)

        with pytest.raises(InvalidTransitionError):
            svc.clear_task(task.id, housekeeper)
        svc.complete_cleaning(task.id, housekeeper)
        with pytest.raises(InvalidTransitionError):
            svc.clear_task(task.id, housekeeper)
        assert db_session.query(CleaningTask).count() == 1

    def test_clear_inspected(self, db_session, housekeeper, supervisor):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        svc = HousekeepingService(db_session, noop)
        task = _start(db_session, room, housekeeper)
        svc.complete_cleaning(task.id, housekeeper)
        svc.inspect_cleaning(task.id, supervisor)

        svc.clear_task(task.id, housekeeper)
        assert db_session.query(CleaningTask).count() == 0

    def test_clear_inspected_tasks_keeps_open_ones(self, db_session, housekeeper, supervisor):
        r1 = make_room(db_session, "L1", status=RoomStatus.CLEANING)
        r2 = make_room(db_session, "L2", status=RoomStatus.CLEANING)
        svc = HousekeepingService(db_session, noop)
        done = _start(db_session, r1, housekeeper)
        svc.complete_cleaning(done.id, housekeeper)
        svc.inspect_cleaning(done.id, supervisor)
        open_task = _start(db_session, r2, housekeeper)

        assert svc.clear_inspected_tasks(housekeeper) == 1
        assert [t.id for t in svc.get_tasks()] == [open_task.id]
