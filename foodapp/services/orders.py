import logging

from sqlalchemy.exc import SQLAlchemyError

from foodapp.clock import utcnow
from foodapp.errors import translate_store_error
from foodapp.schemas import OrderCreate, parse

logger = logging.getLogger(__name__)


class OrderService:
    """Checkout and order listings"""

    def __init__(self, orders, pricing, publisher, clock=utcnow):
        self.orders = orders
        self.pricing = pricing
        self.publisher = publisher
        self.clock = clock

    def create(self, payload, user_id, user_name):
        request = parse(OrderCreate, payload)
        order = self.pricing.build_order(request, user_id, user_name)
        order.created_at = order.updated_at = order.status_changed_at = self.clock()

        self.orders.add(order)
        try:
            self.orders.commit()
        except SQLAlchemyError as e:
            self.orders.rollback()
            raise translate_store_error(e) from e

        logger.info(f"Order {order.id} created for user {user_id}, total {order.total}")
        data = order.to_dict()
        self.publisher.publish('new_order', data)
        return data

    def list_all(self):
        return [order.to_dict() for order in self.orders.list_all()]

    def history(self, user_id):
        return [order.to_dict() for order in self.orders.list_for_user(user_id)]
