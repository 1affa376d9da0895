"""
Order pricing.

Builds an unsaved order from a validated checkout request: resolves the
delivery fee, snapshots each product as it is priced right now, and sums
the totals.
"""
import logging
from decimal import Decimal

from foodapp.models import Order, OrderStatus

logger = logging.getLogger(__name__)


def line_total(item):
    return Decimal(item['price']) * item['quantity']


def order_total(line_items, delivery_fee):
    product_total = sum((line_total(item) for item in line_items), Decimal(0))
    return product_total + Decimal(delivery_fee or 0)


class PricingCalculator:
    def __init__(self, catalog, zone_service):
        self.catalog = catalog
        self.zone_service = zone_service

    def delivery_fee(self, order_type, address):
        if order_type != 'delivery':
            return Decimal(0)
        return Decimal(self.zone_service.fee_for(address.cep))

    def snapshot_line_items(self, requested):
        """Price snapshot for every requested product that still exists.

        Unknown product ids are dropped from the order rather than failing
        the checkout.
        """
        by_id = {}
        for item in requested:
            by_id.setdefault(item.id, item)
        products = self.catalog.get_products(by_id.keys())

        missing = set(by_id) - {product.id for product in products}
        if missing:
            logger.warning(f"Dropping unknown product ids from order: {sorted(missing)}")

        line_items = []
        for product in products:
            item = by_id[product.id]
            line_items.append({
                'id': product.id,
                'name': product.name,
                'price': product.price,
                'category': product.category.name if product.category else None,
                'url': product.url,
                'quantity': item.quantity,
                'observation': item.observation,
            })
        return line_items

    def build_order(self, request, user_id, user_name):
        """Fully priced order draft, not yet persisted"""
        delivery_fee = self.delivery_fee(request.order_type, request.address)
        line_items = self.snapshot_line_items(request.products)
        total = order_total(line_items, delivery_fee)

        return Order(
            user_id=str(user_id),
            user_name=user_name,
            products=line_items,
            status=OrderStatus.CREATED.value,
            observation=request.observation,
            payment_method=request.payment_method,
            payment_id=request.payment_id,
            order_type=request.order_type,
            address=request.address.model_dump() if request.address else None,
            delivery_fee=delivery_fee,
            total=total,
            is_rated=False,
            messages=[],
        )
