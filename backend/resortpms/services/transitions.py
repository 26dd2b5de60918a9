"""
Compare-and-set helper for records driven by a StateMachine
"""
import logging

from sqlalchemy.orm import Session

from resortpms.database import compare_and_set
from resortpms.domain.state_machines import StateMachine
from resortpms.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


def target_state(record, machine: StateMachine, status_enum, trigger: str):
    """Status `trigger` leads to from the record's current status, or InvalidTransitionError"""
    try:
        return status_enum(machine.next_state(record.status.value, trigger))
    except InvalidTransitionError:
        logger.warning(f"{machine.entity} {record.id}: '{trigger}' rejected from {record.status.value}")
        raise


def advance(db: Session, record, machine: StateMachine, status_enum, trigger: str, **values):
    """
    Fire `trigger` on `record`, writing `values` alongside the new status.

    The write is conditional on the status the record was read in; losing a
    race to another writer raises InvalidTransitionError. Not committed here.
    """
    current = record.status
    target = target_state(record, machine, status_enum, trigger)
    if not compare_and_set(db, type(record), record.id, current, status=target, **values):
        db.refresh(record)
        logger.warning(
            f"{machine.entity} {record.id} moved to {record.status.value} concurrently, "
            f"cannot apply {current.value} -> {target.value}"
        )
        raise InvalidTransitionError(
            machine.entity, record.status.value, trigger,
            reason="changed by another request"
        )
    return target
