"""
Order lifecycle engine.

All status changes go through ``advance`` or ``cancel``. Both validate the
move against ``STATUS_FLOW`` and then persist it with a conditional update
on the current status, so two writers racing on the same order (an admin
and the sweeper, or a double click) cannot both win, and side effects run
only for the winner.

Orders and the catalog live in different stores, so a change that touches
both commits the order first (the gate) and then the catalog. When the
catalog step fails the order change is undone again: a delivery goes back
to its previous status, a rating claim is released.
"""
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from foodapp.clock import utcnow
from foodapp.errors import (
    AlreadyRated,
    InvalidTransition,
    NotFound,
    PartialRatingFailure,
    ValidationError,
    WindowExpired,
    translate_store_error,
)
from foodapp.models import STATUS_FLOW, OrderStatus

logger = logging.getLogger(__name__)

# Once the kitchen has finished, customers can no longer cancel
UNCANCELABLE = frozenset({
    OrderStatus.READY,
    OrderStatus.DELIVERING,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELED,
})


def parse_status(value):
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidTransition(f"Invalid status: {value}")


def can_transition(current, target):
    return target in STATUS_FLOW.get(current, frozenset())


class OrderLifecycleEngine:
    def __init__(self, orders, catalog, publisher, clock=utcnow, cancel_window_minutes=30):
        self.orders = orders
        self.catalog = catalog
        self.publisher = publisher
        self.clock = clock
        self.cancel_window = timedelta(minutes=cancel_window_minutes)

    def _load(self, order_id):
        order = self.orders.get(order_id)
        if order is None:
            raise NotFound('Order not found')
        return order

    def _notify_status(self, order_id, status):
        self.publisher.publish(
            'status_update',
            {'orderId': order_id, 'newStatus': status.value},
            room=order_id,
        )

    def advance(self, order_id, requested_status, actor='admin'):
        """Move an order along the status flow and apply its side effects"""
        order = self._load(order_id)
        current = OrderStatus(order.status)
        target = parse_status(requested_status)

        if not can_transition(current, target):
            raise InvalidTransition(f"Cannot change status from {current.value} to {target.value}")

        line_items = list(order.products or [])
        try:
            if not self.orders.transition_status(order_id, current, target, self.clock()):
                self.orders.rollback()
                raise InvalidTransition(f"Order {order_id} is no longer {current.value}")
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            logger.error(f"Failed to advance order {order_id} to {target.value}: {e}")
            raise translate_store_error(e) from e

        if target is OrderStatus.DELIVERED:
            self._record_sales(order_id, current, line_items)

        logger.info(f"Order {order_id} moved {current.value} -> {target.value} by {actor}")
        self._notify_status(order_id, target)
        return self.orders.get(order_id)

    def _record_sales(self, order_id, previous, line_items):
        """Bump sold counts in one catalog transaction.

        On failure the order is moved back to ``previous`` so the delivery
        can be retried, and the store error is raised.
        """
        try:
            for item in line_items:
                self.catalog.increment_sold_count(item['id'], item['quantity'])
            self.catalog.commit()
        except SQLAlchemyError as e:
            self.catalog.rollback()
            logger.error(f"Recording sales of order {order_id} failed: {e}")
            self._revert_delivery(order_id, previous)
            raise translate_store_error(e) from e

    def _revert_delivery(self, order_id, previous):
        try:
            self.orders.transition_status(order_id, OrderStatus.DELIVERED, previous, self.clock())
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            logger.error(f"Order {order_id} stays DELIVERED without sold counts: {e}")
            raise translate_store_error(e) from e

    def cancel(self, order_id, requesting_user_id):
        """Customer self-cancel, allowed early in the flow and inside the window"""
        order = self.orders.get_owned(order_id, requesting_user_id)
        if order is None:
            raise NotFound('Order not found')

        current = OrderStatus(order.status)
        if current in UNCANCELABLE:
            raise InvalidTransition('Order is already in progress or finished and cannot be canceled')

        now = self.clock()
        if now - order.created_at > self.cancel_window:
            minutes = int(self.cancel_window.total_seconds() // 60)
            raise WindowExpired(f"Cancellation time limit ({minutes} min) has expired")

        try:
            if not self.orders.transition_status(order_id, current, OrderStatus.CANCELED, now):
                self.orders.rollback()
                raise InvalidTransition(f"Order {order_id} is no longer {current.value}")
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            raise translate_store_error(e) from e

        logger.info(f"Order {order_id} canceled by user {requesting_user_id}")
        self._notify_status(order_id, OrderStatus.CANCELED)
        return self.orders.get(order_id)

    def rate(self, order_id, stars):
        """Apply one star rating to every distinct product of the order.

        The order is claimed first (is_rated false -> true), which rejects a
        second rating. Product averages are then updated in one catalog
        transaction; if that fails the claim is released again.
        """
        if isinstance(stars, bool) or not isinstance(stars, int) or not 1 <= stars <= 5:
            raise ValidationError('Rating must be between 1 and 5', details=['stars: must be between 1 and 5'])

        order = self._load(order_id)
        if order.is_rated:
            raise AlreadyRated()

        product_ids = []
        for item in order.products or []:
            if item['id'] not in product_ids:
                product_ids.append(item['id'])

        try:
            claimed = self.orders.claim_rating(order_id)
            if not claimed:
                self.orders.rollback()
                raise AlreadyRated()
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            raise translate_store_error(e) from e

        try:
            for product_id in product_ids:
                if not self.catalog.apply_rating(product_id, stars):
                    logger.warning(f"Product {product_id} of order {order_id} no longer exists, skipping rating")
            self.catalog.commit()
        except SQLAlchemyError as e:
            self.catalog.rollback()
            logger.error(f"Rating products of order {order_id} failed: {e}")
            self._release_rating(order_id)
            raise translate_store_error(e) from e

        logger.info(f"Order {order_id} rated {stars} stars across {len(product_ids)} products")
        return self.orders.get(order_id)

    def _release_rating(self, order_id):
        try:
            self.orders.release_rating(order_id)
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            logger.error(f"Order {order_id} stays marked as rated without product ratings: {e}")
            raise PartialRatingFailure(
                'Rating could not be applied and the order could not be restored'
            ) from e

    def add_message(self, order_id, user_name, text):
        if not text or not text.strip():
            raise ValidationError('Message text is required', details=['text: Field required'])

        order = self._load(order_id)
        message = {
            'userName': user_name,
            'text': text.strip(),
            'createdAt': self.clock().isoformat(),
        }
        # JSON columns only track reassignment
        order.messages = list(order.messages or []) + [message]
        try:
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            raise translate_store_error(e) from e

        self.publisher.publish('new_order_message', {'orderId': order_id, 'message': message})
        return order.messages
