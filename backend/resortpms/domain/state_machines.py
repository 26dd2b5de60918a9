"""
State machine definitions for every lifecycle the core owns

Booking, CleaningTask, MaintenanceRequest, PaymentSlip, Order and Payment.
Room transitions depend on who asks for them and live in RoomStateService.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Set

from resortpms.exceptions import InvalidTransitionError
from resortpms.models.ontology import (
    BookingStatus, CleaningStatus, MaintenanceStatus, SlipStatus, OrderStatus, PaymentStatus,
)


@dataclass(frozen=True)
class StateTransition:
    """One legal edge"""
    from_state: str
    to_state: str
    trigger: str


@dataclass
class StateMachine:
    """State machine definition"""
    entity: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str
    final_states: Set[str] = field(default_factory=set)

    def get_valid_transitions(self, current_state: str) -> List[StateTransition]:
        return [t for t in self.transitions if t.from_state == current_state]

    def find(self, current_state: str, trigger: str) -> Optional[StateTransition]:
        for t in self.transitions:
            if t.from_state == current_state and t.trigger == trigger:
                return t
        return None

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        return any(
            t.from_state == from_state and t.to_state == to_state
            for t in self.transitions
        )

    def next_state(self, current_state: str, trigger: str) -> str:
        """
        Target state of `trigger` fired from `current_state`.

        Raises InvalidTransitionError when the edge does not exist; callers use
        this before mutating anything so a rejected trigger leaves the record
        untouched.
        """
        transition = self.find(current_state, trigger)
        if transition is None:
            allowed = ", ".join(t.trigger for t in self.get_valid_transitions(current_state)) or "none"
            raise InvalidTransitionError(
                self.entity, current_state, trigger,
                reason=f"allowed triggers from '{current_state}': {allowed}"
            )
        return transition.to_state


def _values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


BOOKING_STATE_MACHINE = StateMachine(
    entity="Booking",
    states=_values(BookingStatus),
    transitions=[
        StateTransition("pending", "confirmed", "confirm"),
        StateTransition("pending", "cancelled", "cancel"),
        StateTransition("confirmed", "checked-in", "check_in"),
        StateTransition("confirmed", "cancelled", "cancel"),
        StateTransition("checked-in", "checked-out", "check_out"),
    ],
    initial_state="pending",
    final_states={"checked-out", "cancelled"},
)

CLEANING_STATE_MACHINE = StateMachine(
    entity="CleaningTask",
    states=_values(CleaningStatus),
    transitions=[
        StateTransition("pending", "in_progress", "assign"),
        StateTransition("in_progress", "completed", "complete"),
        StateTransition("completed", "inspected", "inspect"),
    ],
    initial_state="pending",
    final_states={"inspected"},
)

MAINTENANCE_STATE_MACHINE = StateMachine(
    entity="MaintenanceRequest",
    states=_values(MaintenanceStatus),
    transitions=[
        StateTransition("pending", "in_progress", "start"),
        StateTransition("pending", "completed", "complete"),
        StateTransition("in_progress", "completed", "complete"),
    ],
    initial_state="pending",
    final_states={"completed"},
)

SLIP_STATE_MACHINE = StateMachine(
    entity="PaymentSlip",
    states=_values(SlipStatus),
    transitions=[
        StateTransition("pending", "approved", "approve"),
        StateTransition("pending", "rejected", "reject"),
    ],
    initial_state="pending",
    final_states={"approved", "rejected"},
)

ORDER_STATE_MACHINE = StateMachine(
    entity="Order",
    states=_values(OrderStatus),
    transitions=[
        StateTransition("pending", "preparing", "prepare"),
        StateTransition("preparing", "ready", "ready"),
        StateTransition("ready", "delivered", "deliver"),
        StateTransition("pending", "paid", "settle"),
        StateTransition("preparing", "paid", "settle"),
        StateTransition("ready", "paid", "settle"),
        StateTransition("delivered", "paid", "settle"),
    ],
    initial_state="pending",
    final_states={"paid"},
)

PAYMENT_STATE_MACHINE = StateMachine(
    entity="Payment",
    states=_values(PaymentStatus),
    transitions=[
        StateTransition("pending", "completed", "complete"),
        StateTransition("pending", "failed", "fail"),
        StateTransition("completed", "refunded", "refund"),
    ],
    initial_state="pending",
    final_states={"failed", "refunded"},
)
