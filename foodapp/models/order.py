"""
Order documents.

Orders live in their own store (the ``orders`` bind) and keep line items,
address and chat messages as JSON documents, so catalog changes never
rewrite a historical order.
"""
import enum
import uuid

from foodapp import db
from foodapp.clock import utcnow


class OrderStatus(str, enum.Enum):
    CREATED = "CREATED"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERING = "DELIVERING"
    DELIVERED = "DELIVERED"
    CANCELED = "CANCELED"


# Allowed targets for each status; terminal statuses map to nothing
STATUS_FLOW = {
    OrderStatus.CREATED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERING, OrderStatus.CANCELED}),
    OrderStatus.DELIVERING: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}


def _new_order_id():
    return uuid.uuid4().hex


class Order(db.Model):
    __bind_key__ = 'orders'
    __tablename__ = 'orders'

    id = db.Column(db.String(32), primary_key=True, default=_new_order_id)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    user_name = db.Column(db.String(255), nullable=False)

    # Snapshot of the ordered products
    products = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default=OrderStatus.CREATED.value, index=True)
    observation = db.Column(db.Text)

    # Payment
    payment_method = db.Column(db.String(50), nullable=False)
    payment_id = db.Column(db.String(255))

    # Delivery
    order_type = db.Column(db.String(20), nullable=False, default='delivery')
    address = db.Column(db.JSON)
    delivery_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    is_rated = db.Column(db.Boolean, nullable=False, default=False)
    messages = db.Column(db.JSON, nullable=False, default=list)

    # Timestamps
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    status_changed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user': {
                'id': self.user_id,
                'name': self.user_name,
            },
            'products': self.products or [],
            'status': self.status,
            'observation': self.observation,
            'payment_method': self.payment_method,
            'payment_id': self.payment_id,
            'order_type': self.order_type,
            'address': self.address,
            'delivery_fee': float(self.delivery_fee or 0),
            'total': float(self.total or 0),
            'is_rated': self.is_rated,
            'messages': self.messages or [],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
