from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from config import TestingConfig
from foodapp import create_app, db
from foodapp.models import Category, DeliveryZone, Order, OrderStatus, Product
from foodapp.services.notifications import EventPublisher


class RecordingPublisher(EventPublisher):
    def __init__(self):
        self.events = []

    def publish(self, event, payload, room=None):
        self.events.append((event, payload, room))
        return True

    def named(self, event):
        return [(payload, room) for name, payload, room in self.events if name == event]


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0))


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def app(tmp_path, clock, publisher):
    class _Config(TestingConfig):
        UPLOAD_DIR = str(tmp_path / 'uploads')

    app = create_app(_Config)
    app.extensions['clock'] = clock
    app.extensions['event_publisher'] = publisher

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def _token(user_id, name, admin=False):
    return create_access_token(identity=str(user_id), additional_claims={'name': name, 'admin': admin})


@pytest.fixture
def customer_headers(app):
    return {'Authorization': f"Bearer {_token(1, 'Maria')}"}


@pytest.fixture
def other_customer_headers(app):
    return {'Authorization': f"Bearer {_token(2, 'Joao')}"}


@pytest.fixture
def admin_headers(app):
    return {'Authorization': f"Bearer {_token(99, 'Admin', admin=True)}"}


@pytest.fixture
def menu(app):
    """Two categories, three products and one delivery zone"""
    burgers = Category(name='Burgers', path='burgers.png')
    drinks = Category(name='Drinks')
    db.session.add_all([burgers, drinks])
    db.session.flush()

    products = {
        'burger': Product(name='Classic Burger', price=1000, category_id=burgers.id,
                          description='Beef and cheese', path='burger.png'),
        'fries': Product(name='Fries', price=500, category_id=burgers.id, description='Crispy'),
        'soda': Product(name='Soda', price=300, category_id=drinks.id, description='Cold'),
    }
    db.session.add_all(products.values())
    db.session.add(DeliveryZone(zip_code_start=12000000, zip_code_end=13000000, price=300))
    db.session.commit()
    return products


def make_order(products, user_id='1', status=OrderStatus.CREATED, created_at=None, **fields):
    """Persist an order document directly, bypassing checkout"""
    created_at = created_at or datetime(2026, 1, 15, 12, 0, 0)
    line_items = [
        {
            'id': product.id,
            'name': product.name,
            'price': product.price,
            'category': None,
            'url': None,
            'quantity': quantity,
            'observation': None,
        }
        for product, quantity in products
    ]
    order = Order(
        user_id=str(user_id),
        user_name=fields.pop('user_name', 'Maria'),
        products=line_items,
        status=status.value,
        payment_method=fields.pop('payment_method', 'cash'),
        order_type=fields.pop('order_type', 'takeout'),
        delivery_fee=fields.pop('delivery_fee', 0),
        total=fields.pop('total', sum(p.price * q for p, q in products)),
        created_at=created_at,
        status_changed_at=fields.pop('status_changed_at', created_at),
        **fields,
    )
    db.session.add(order)
    db.session.commit()
    return order


DELIVERY_ADDRESS = {
    'cep': '12345-678',
    'street': 'Rua das Flores',
    'number': '42',
    'neighborhood': 'Centro',
    'city': 'Campinas',
}
