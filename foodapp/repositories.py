"""
Persistence layer.

Each repository wraps the session it is constructed with; services depend
on repositories and never touch the session directly. Counters and
statuses are changed with single conditional UPDATE statements so that
concurrent requests and the sweeper serialize inside the database.
"""
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from foodapp.models import Category, DeliveryZone, Expense, Order, OrderStatus, Product


class _Repository:
    def __init__(self, session):
        self.session = session

    def add(self, instance):
        self.session.add(instance)
        return instance

    def flush(self):
        self.session.flush()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()


class CatalogRepository(_Repository):
    """Products and categories (relational store)"""

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def get_products(self, product_ids: Iterable[int]) -> List[Product]:
        ids = list(product_ids)
        if not ids:
            return []
        return (
            self.session.query(Product)
            .options(joinedload(Product.category))
            .filter(Product.id.in_(ids))
            .order_by(Product.id)
            .all()
        )

    def list_available_products(self) -> List[Product]:
        return (
            self.session.query(Product)
            .options(joinedload(Product.category))
            .filter(Product.available.is_(True))
            .order_by(Product.id)
            .all()
        )

    def increment_sold_count(self, product_id: int, quantity: int) -> int:
        return (
            self.session.query(Product)
            .filter(Product.id == product_id)
            .update(
                {Product.sold_count: func.coalesce(Product.sold_count, 0) + quantity},
                synchronize_session='fetch',
            )
        )

    def apply_rating(self, product_id: int, stars: int) -> int:
        """Fold one star rating into the running mean in a single statement"""
        count = func.coalesce(Product.rating_count, 0)
        average = func.coalesce(Product.rating_average, 0.0)
        return (
            self.session.query(Product)
            .filter(Product.id == product_id)
            .update(
                {
                    Product.rating_average: (average * count + stars) / (count + 1.0),
                    Product.rating_count: count + 1,
                },
                synchronize_session='fetch',
            )
        )

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.session.get(Category, category_id)

    def get_category_by_name(self, name: str) -> Optional[Category]:
        return self.session.query(Category).filter(Category.name == name).first()

    def list_categories(self) -> List[Category]:
        return self.session.query(Category).order_by(Category.id).all()


class DeliveryZoneRepository(_Repository):
    def list_all(self) -> List[DeliveryZone]:
        return (
            self.session.query(DeliveryZone)
            .order_by(DeliveryZone.zip_code_start, DeliveryZone.id)
            .all()
        )

    def find_covering(self, postal_code: int) -> Optional[DeliveryZone]:
        """Narrowest zone containing the code; ties go to the oldest zone"""
        return (
            self.session.query(DeliveryZone)
            .filter(
                DeliveryZone.zip_code_start <= postal_code,
                DeliveryZone.zip_code_end >= postal_code,
            )
            .order_by(
                (DeliveryZone.zip_code_end - DeliveryZone.zip_code_start).asc(),
                DeliveryZone.id.asc(),
            )
            .first()
        )


class OrderRepository(_Repository):
    """Order documents (orders store)"""

    def get(self, order_id: str) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def get_owned(self, order_id: str, user_id: str) -> Optional[Order]:
        return (
            self.session.query(Order)
            .filter(Order.id == order_id, Order.user_id == str(user_id))
            .first()
        )

    def list_all(self) -> List[Order]:
        return self.session.query(Order).order_by(Order.created_at.desc()).all()

    def list_for_user(self, user_id: str) -> List[Order]:
        return (
            self.session.query(Order)
            .filter(Order.user_id == str(user_id))
            .order_by(Order.created_at.desc())
            .all()
        )

    def list_created_between(self, start: datetime, end: datetime) -> List[Order]:
        return (
            self.session.query(Order)
            .filter(Order.created_at >= start, Order.created_at <= end)
            .order_by(Order.created_at)
            .all()
        )

    def transition_status(self, order_id: str, current: OrderStatus, target: OrderStatus,
                          now: datetime) -> bool:
        """Compare-and-set the status; False when another writer got there first"""
        updated = (
            self.session.query(Order)
            .filter(Order.id == order_id, Order.status == current.value)
            .update(
                {
                    Order.status: target.value,
                    Order.status_changed_at: now,
                    Order.updated_at: now,
                },
                synchronize_session='fetch',
            )
        )
        return updated == 1

    def claim_rating(self, order_id: str) -> bool:
        updated = (
            self.session.query(Order)
            .filter(Order.id == order_id, Order.is_rated.is_(False))
            .update({Order.is_rated: True}, synchronize_session='fetch')
        )
        return updated == 1

    def release_rating(self, order_id: str) -> None:
        (
            self.session.query(Order)
            .filter(Order.id == order_id)
            .update({Order.is_rated: False}, synchronize_session='fetch')
        )

    def stale_in_status(self, status: OrderStatus, changed_before: datetime) -> List[str]:
        rows = (
            self.session.query(Order.id)
            .filter(Order.status == status.value, Order.status_changed_at < changed_before)
            .order_by(Order.status_changed_at)
            .all()
        )
        return [row[0] for row in rows]


class ExpenseRepository(_Repository):
    def list_between(self, start: datetime, end: datetime) -> List[Expense]:
        return (
            self.session.query(Expense)
            .filter(Expense.date >= start, Expense.date <= end)
            .order_by(Expense.date)
            .all()
        )
