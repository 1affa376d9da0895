"""
Dashboard aggregates over orders and expenses.

Both views cover a period given as ``startDate``/``endDate`` ISO dates and
fall back to the current day when either bound is missing or unparsable.
Canceled orders count only towards the canceled figures.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime, time, timezone
from decimal import Decimal

from foodapp.clock import utcnow
from foodapp.models import Expense, OrderStatus
from foodapp.schemas import ExpenseCreate, parse
from foodapp.services.pricing import line_total

logger = logging.getLogger(__name__)


def _parse_day(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None


def _money(value):
    return float(value)


class DashboardService:
    def __init__(self, orders, expenses, clock=utcnow):
        self.orders = orders
        self.expenses = expenses
        self.clock = clock

    def period(self, start_date=None, end_date=None):
        start = _parse_day(start_date)
        end = _parse_day(end_date)
        if start is None or end is None:
            start = end = self.clock().date()
        return datetime.combine(start, time.min), datetime.combine(end, time.max)

    def _load(self, start_date, end_date):
        start, end = self.period(start_date, end_date)
        return self.orders.list_created_between(start, end), self.expenses.list_between(start, end)

    @staticmethod
    def _products_total(order):
        return sum((line_total(item) for item in order.products or []), Decimal(0))

    def summary(self, start_date=None, end_date=None):
        orders, expenses = self._load(start_date, end_date)

        product_revenue = Decimal(0)
        delivery_revenue = Decimal(0)
        credit_card_sales = Decimal(0)
        canceled_revenue = Decimal(0)
        delivery_count = 0
        takeout_count = 0
        valid_orders = 0
        sold = OrderedDict()

        for order in orders:
            products_total = self._products_total(order)
            delivery_fee = Decimal(order.delivery_fee or 0)
            order_total = products_total + delivery_fee

            if order.status == OrderStatus.CANCELED.value:
                canceled_revenue += order_total
                continue

            valid_orders += 1
            if order.order_type == 'takeout':
                takeout_count += 1
            else:
                delivery_count += 1

            product_revenue += products_total
            delivery_revenue += delivery_fee
            if order.payment_method == 'card':
                credit_card_sales += order_total

            for item in order.products or []:
                sold[item['name']] = sold.get(item['name'], 0) + item['quantity']

        status_count = {
            status.value.lower(): len([o for o in orders if o.status == status.value])
            for status in OrderStatus
        }

        total_expenses = sum((Decimal(e.value) for e in expenses), Decimal(0))
        ranking = sorted(
            ({'name': name, 'quantity': quantity} for name, quantity in sold.items()),
            key=lambda entry: entry['quantity'],
            reverse=True,
        )

        return {
            'period': {'startDate': start_date, 'endDate': end_date},
            'status': status_count,
            'finance': {
                'productRevenue': _money(product_revenue),
                'deliveryRevenue': _money(delivery_revenue),
                'totalRevenue': _money(product_revenue + delivery_revenue),
                'totalExpenses': _money(total_expenses),
                'netProfit': _money(product_revenue - total_expenses),
                'canceledRevenue': _money(canceled_revenue),
                'validOrdersCount': valid_orders,
                'deliveryCount': delivery_count,
                'takeoutCount': takeout_count,
            },
            'paymentTypes': {
                'creditCard': _money(credit_card_sales),
            },
            'ranking': {
                'bestSellers': ranking[:5],
                'worstSellers': list(reversed(ranking))[:5],
            },
        }

    def reports(self, start_date=None, end_date=None):
        orders, expenses = self._load(start_date, end_date)
        valid = [o for o in orders if o.status != OrderStatus.CANCELED.value]
        canceled = [o for o in orders if o.status == OrderStatus.CANCELED.value]

        products = OrderedDict()
        for order in valid:
            for item in order.products or []:
                entry = products.setdefault(item['name'], {'quantity': 0, 'totalValue': Decimal(0)})
                entry['quantity'] += item['quantity']
                entry['totalValue'] += line_total(item)

        products_list = sorted(
            (
                {'name': name, 'quantity': data['quantity'], 'totalValue': _money(data['totalValue'])}
                for name, data in products.items()
            ),
            key=lambda entry: entry['quantity'],
            reverse=True,
        )

        return {
            'salesList': [
                {
                    'id': o.id,
                    'date': o.created_at.isoformat(),
                    'user': o.user_name,
                    'total': _money(o.total or 0),
                    'payment': o.payment_method,
                }
                for o in valid
            ],
            'productsList': products_list,
            'deliveryList': [
                {
                    'id': o.id,
                    'cep': (o.address or {}).get('cep', 'N/A'),
                    'fee': _money(o.delivery_fee or 0),
                    'date': o.created_at.isoformat(),
                }
                for o in valid if o.order_type == 'delivery'
            ],
            'canceledList': [
                {'id': o.id, 'date': o.created_at.isoformat(), 'total': _money(o.total or 0)}
                for o in canceled
            ],
            'expensesList': [e.to_dict() for e in expenses],
        }

    def add_expense(self, payload):
        data = parse(ExpenseCreate, payload)
        when = data.date
        if when.tzinfo is not None:
            when = when.astimezone(timezone.utc).replace(tzinfo=None)
        expense = self.expenses.add(Expense(description=data.description, value=data.value, date=when))
        self.expenses.commit()
        logger.info(f"Registered expense {expense.id}: {expense.description}")
        return expense.to_dict()
