"""
Actor permission gate and bearer token tests
"""
import pytest
from datetime import timedelta

from fastapi import HTTPException
from jose import jwt

from resortpms.config import settings
from resortpms.exceptions import PermissionDeniedError
from resortpms.security import permissions as perm
from resortpms.security.auth import Actor, create_access_token, decode_token, require_permission


class TestRequirePermission:

    def test_granted(self, receptionist):
        require_permission(receptionist, perm.BOOKING_CHECKIN)

    def test_denied(self, housekeeper):
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_permission(housekeeper, perm.BOOKING_CHECKIN)
        assert exc_info.value.action == perm.BOOKING_CHECKIN
        assert exc_info.value.status_code == 403

    def test_missing_actor(self):
        with pytest.raises(PermissionDeniedError):
            require_permission(None, perm.ROOM_READ)

    def test_empty_permission_set(self, nobody):
        assert not nobody.has_permission(perm.ROOM_READ)

    def test_role_presets(self):
        assert perm.HOUSEKEEPING_INSPECT in perm.SUPERVISOR_PERMISSIONS
        assert perm.HOUSEKEEPING_INSPECT not in perm.HOUSEKEEPER_PERMISSIONS
        assert perm.PAYMENT_REFUND in perm.OWNER_PERMISSIONS
        assert perm.PAYMENT_REFUND not in perm.RECEPTIONIST_PERMISSIONS

    def test_only_staff_confirm_bookings(self):
        assert perm.BOOKING_WRITE in perm.GUEST_PERMISSIONS
        assert perm.BOOKING_CONFIRM not in perm.GUEST_PERMISSIONS
        assert perm.BOOKING_CONFIRM in perm.RECEPTIONIST_PERMISSIONS
        assert perm.BOOKING_CONFIRM in perm.OWNER_PERMISSIONS


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("front-9", {perm.BOOKING_READ, perm.ROOM_READ})
        payload = decode_token(token)
        assert payload["sub"] == "front-9"
        assert payload["permissions"] == sorted([perm.BOOKING_READ, perm.ROOM_READ])

    def test_expired(self):
        token = create_access_token("front-9", [], expires_in=timedelta(seconds=-1))
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_foreign_signature(self):
        token = jwt.encode({"sub": "front-9", "permissions": []}, "not-the-shared-secret",
                           algorithm=settings.ALGORITHM)
        with pytest.raises(HTTPException):
            decode_token(token)

    def test_actor_is_hashable(self):
        actor = Actor("a", frozenset({perm.ROOM_READ}))
        assert actor == Actor("a", frozenset({perm.ROOM_READ}))
        assert len({actor, Actor("a", frozenset({perm.ROOM_READ}))}) == 1
