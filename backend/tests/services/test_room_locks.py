"""
Tests for resortpms/services/room_locks.py
"""
import pytest

from resortpms.exceptions import RoomUnavailableError
from resortpms.services.room_locks import RoomLockRegistry


class TestRoomLockRegistry:

    def test_busy_room_times_out(self):
        locks = RoomLockRegistry(timeout=0.01)
        with locks.hold(1):
            with pytest.raises(RoomUnavailableError):
                with locks.hold(1):
                    pass

    def test_rooms_lock_independently(self):
        locks = RoomLockRegistry(timeout=0.01)
        with locks.hold(1):
            with locks.hold(2):
                pass

    def test_released_after_error(self):
        locks = RoomLockRegistry(timeout=0.01)
        with pytest.raises(ValueError):
            with locks.hold(1):
                raise ValueError("boom")
        with locks.hold(1):
            pass
