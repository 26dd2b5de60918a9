"""
Order service - food & beverage charges
Line items carry the product id, name and price at time of sale; the catalog
and stock levels live outside this service.
"""
from typing import Callable, List, Optional
from decimal import Decimal
import logging

from sqlalchemy.orm import Session

from resortpms.database import unit_of_work
from resortpms.domain.state_machines import ORDER_STATE_MACHINE
from resortpms.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from resortpms.models.events import EventType, OrderCreatedData
from resortpms.models.ontology import (
    Booking, Order, OrderItem, OrderStatus, ACTIVE_BOOKING_STATUSES,
)
from resortpms.models.schemas import OrderCreate
from resortpms.security.auth import Actor, require_permission
from resortpms.security import permissions as perm
from resortpms.services.billing_service import to_money
from resortpms.services.event_bus import Event, emit, event_bus
from resortpms.services.transitions import advance

logger = logging.getLogger(__name__)

# Kitchen-side triggers; `settle` belongs to PaymentService
KITCHEN_TRIGGERS = ("prepare", "ready", "deliver")


class OrderService:
    """Order service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    def get_order(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def get_orders(self, booking_id: Optional[int] = None,
                   status: Optional[OrderStatus] = None) -> List[Order]:
        query = self.db.query(Order)
        if booking_id:
            query = query.filter(Order.booking_id == booking_id)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def create_order(self, data: OrderCreate, actor: Actor) -> Order:
        """
        subtotal = sum(quantity x unit_price), total = subtotal + tax.
        Tax is supplied by the caller.
        """
        require_permission(actor, perm.ORDER_WRITE)
        if not data.items:
            raise InvalidInputError("An order needs at least one item")

        guest_name = data.guest_name
        if data.booking_id is not None:
            booking = self.db.query(Booking).filter(Booking.id == data.booking_id).first()
            if not booking:
                raise NotFoundError("Booking", data.booking_id)
            if booking.status not in ACTIVE_BOOKING_STATUSES:
                logger.warning(f"Order refused: booking {booking.id} is {booking.status.value}")
                raise InvalidTransitionError(
                    "Booking", booking.status.value, "charge_order",
                    reason="orders can only be charged to confirmed or checked-in bookings"
                )
            guest_name = guest_name or booking.guest_name

        with unit_of_work(self.db):
            order = Order(
                booking_id=data.booking_id,
                guest_name=guest_name,
                status=OrderStatus.PENDING,
                tax=to_money(data.tax),
                created_by=actor.actor_id,
            )
            subtotal = Decimal("0")
            for item in data.items:
                line_total = to_money(Decimal(item.unit_price) * item.quantity)
                subtotal += line_total
                order.items.append(OrderItem(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    unit_price=to_money(item.unit_price),
                    quantity=item.quantity,
                    total=line_total,
                ))
            order.subtotal = subtotal
            order.total = subtotal + order.tax
            self.db.add(order)

        self.db.refresh(order)
        logger.info(f"Order {order.id} created, total {order.total}, booking {order.booking_id}")
        emit(self._publish_event, EventType.ORDER_CREATED, OrderCreatedData(
            order_id=order.id,
            booking_id=order.booking_id,
            total=order.total,
            item_count=len(order.items),
            actor_id=actor.actor_id,
        ).to_dict(), source="order_service")
        return order

    def update_order_status(self, order_id: int, trigger: str, actor: Actor) -> Order:
        require_permission(actor, perm.ORDER_WRITE)
        if trigger not in KITCHEN_TRIGGERS:
            raise InvalidInputError(
                f"Unknown order trigger '{trigger}', expected one of {', '.join(KITCHEN_TRIGGERS)}",
                trigger=trigger
            )
        order = self.get_order(order_id)

        with unit_of_work(self.db):
            advance(self.db, order, ORDER_STATE_MACHINE, OrderStatus, trigger)

        self.db.refresh(order)
        logger.info(f"Order {order.id} -> {order.status.value}")
        return order
