from foodapp.models.catalog import Category, DeliveryZone, Expense, Product
from foodapp.models.order import STATUS_FLOW, Order, OrderStatus

__all__ = [
    'Category',
    'DeliveryZone',
    'Expense',
    'Order',
    'OrderStatus',
    'Product',
    'STATUS_FLOW',
]
