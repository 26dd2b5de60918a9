"""
Typed failures raised by the orchestration core

Every workflow step either commits all of its writes or raises one of these
with nothing written. The API layer maps them to HTTP responses by `status_code`.
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for every failure the core reports to its caller"""

    code = "domain_error"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.context:
            payload["context"] = {k: str(v) for k, v in self.context.items()}
        return payload


class NotFoundError(DomainError):
    """Referenced entity id does not exist"""

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(DomainError):
    code = "permission_denied"
    status_code = 403

    def __init__(self, actor_id: Optional[str], action: str):
        super().__init__(f"Actor {actor_id} lacks permission '{action}'", actor_id=actor_id, action=action)
        self.action = action


class InvalidTransitionError(DomainError):
    """Attempted state change is not legal from the current state"""

    code = "invalid_transition"
    status_code = 409

    def __init__(self, entity: str, current: str, target: str, reason: str = ""):
        message = f"{entity} in state '{current}' does not allow '{target}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, entity=entity, current=current, target=target)
        self.current = current
        self.target = target


class OverlapError(DomainError):
    """Booking interval conflicts with a booking already holding the room"""

    code = "overlap"
    status_code = 409


class RoomUnavailableError(DomainError):
    """Cross-entity guard failure: the room is not in the state the step needs"""

    code = "room_unavailable"
    status_code = 409


class AlreadyResolvedError(DomainError):
    code = "already_resolved"
    status_code = 409


class InvalidInputError(DomainError):
    """Malformed input that no state could accept"""

    code = "invalid_input"
    status_code = 422


class InvalidIntervalError(InvalidInputError):
    """Malformed stay interval"""

    code = "invalid_interval"
