import itertools
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_order
from foodapp import db
from foodapp.errors import InvalidTransition, NotFound, StoreUnavailable
from foodapp.models import STATUS_FLOW, Order, OrderStatus, Product
from foodapp.repositories import CatalogRepository, OrderRepository
from foodapp.services.lifecycle import OrderLifecycleEngine, can_transition

ALLOWED = {
    (OrderStatus.CREATED, OrderStatus.PREPARING),
    (OrderStatus.CREATED, OrderStatus.CANCELED),
    (OrderStatus.PREPARING, OrderStatus.READY),
    (OrderStatus.PREPARING, OrderStatus.CANCELED),
    (OrderStatus.READY, OrderStatus.DELIVERING),
    (OrderStatus.READY, OrderStatus.CANCELED),
    (OrderStatus.DELIVERING, OrderStatus.DELIVERED),
}


@pytest.fixture
def engine(app, clock, publisher):
    return OrderLifecycleEngine(
        OrderRepository(db.session),
        CatalogRepository(db.session),
        publisher,
        clock=clock,
    )


def test_transition_table_is_exhaustive():
    assert set(STATUS_FLOW) == set(OrderStatus)
    for current, target in itertools.product(OrderStatus, OrderStatus):
        assert can_transition(current, target) == ((current, target) in ALLOWED)


def test_self_loops_are_never_allowed():
    for status in OrderStatus:
        assert not can_transition(status, status)


@pytest.mark.parametrize('current,target', sorted(ALLOWED, key=str))
def test_advance_allowed_moves(engine, menu, publisher, current, target):
    order = make_order([(menu['burger'], 1)], status=current)

    updated = engine.advance(order.id, target.value)

    assert updated.status == target.value
    assert publisher.named('status_update') == [
        ({'orderId': order.id, 'newStatus': target.value}, order.id),
    ]


@pytest.mark.parametrize('current,target', [
    (OrderStatus.CREATED, OrderStatus.DELIVERED),
    (OrderStatus.CREATED, OrderStatus.CREATED),
    (OrderStatus.DELIVERING, OrderStatus.CANCELED),
    (OrderStatus.DELIVERED, OrderStatus.PREPARING),
    (OrderStatus.CANCELED, OrderStatus.PREPARING),
    (OrderStatus.READY, OrderStatus.PREPARING),
])
def test_advance_rejected_moves(engine, menu, publisher, current, target):
    order = make_order([(menu['burger'], 1)], status=current)

    with pytest.raises(InvalidTransition):
        engine.advance(order.id, target.value)

    db.session.expire_all()
    assert db.session.get(Order, order.id).status == current.value
    assert publisher.events == []


def test_unknown_status_is_an_invalid_transition(engine, menu):
    order = make_order([(menu['burger'], 1)])
    with pytest.raises(InvalidTransition):
        engine.advance(order.id, 'COOKING')


def test_advance_missing_order(engine):
    with pytest.raises(NotFound):
        engine.advance('doesnotexist', 'PREPARING')


def test_advance_records_status_change_time(engine, menu, clock):
    order = make_order([(menu['burger'], 1)])
    clock.advance(minutes=5)

    updated = engine.advance(order.id, 'PREPARING')

    assert updated.status_changed_at == clock.now


def test_delivered_increments_sold_count_once(engine, menu):
    order = make_order(
        [(menu['burger'], 2), (menu['soda'], 3)],
        status=OrderStatus.DELIVERING,
    )

    engine.advance(order.id, 'DELIVERED')
    with pytest.raises(InvalidTransition):
        engine.advance(order.id, 'DELIVERED')

    db.session.expire_all()
    assert db.session.get(Product, menu['burger'].id).sold_count == 2
    assert db.session.get(Product, menu['soda'].id).sold_count == 3
    assert db.session.get(Product, menu['fries'].id).sold_count == 0


def test_stale_writer_loses_compare_and_set(engine, menu, publisher):
    order = make_order([(menu['burger'], 1)], status=OrderStatus.DELIVERING)
    stale = OrderRepository(db.session)

    # Another writer delivers the order first
    assert stale.transition_status(order.id, OrderStatus.DELIVERING, OrderStatus.DELIVERED, engine.clock())
    db.session.commit()

    assert not stale.transition_status(order.id, OrderStatus.DELIVERING, OrderStatus.DELIVERED, engine.clock())
    db.session.rollback()


def test_sold_count_untouched_by_other_transitions(engine, menu):
    order = make_order([(menu['burger'], 4)])
    for status in ('PREPARING', 'READY', 'DELIVERING'):
        engine.advance(order.id, status)

    db.session.expire_all()
    assert db.session.get(Product, menu['burger'].id).sold_count == 0


def test_admin_advances_through_api(client, menu, admin_headers, publisher):
    order = make_order([(menu['burger'], 1)])

    r = client.put(f'/orders/{order.id}', json={'status': 'PREPARING'}, headers=admin_headers)

    assert r.status_code == 200
    assert r.get_json()['order']['status'] == 'PREPARING'
    assert publisher.named('status_update')[0][1] == order.id


def test_api_rejects_invalid_transition(client, menu, admin_headers):
    order = make_order([(menu['burger'], 1)])

    r = client.put(f'/orders/{order.id}', json={'status': 'DELIVERED'}, headers=admin_headers)

    assert r.status_code == 400
    assert r.get_json()['kind'] == 'InvalidTransition'


def test_customers_cannot_advance(client, menu, customer_headers):
    order = make_order([(menu['burger'], 1)])

    r = client.put(f'/orders/{order.id}', json={'status': 'PREPARING'}, headers=customer_headers)

    assert r.status_code == 403


def test_concurrent_delivery_applies_side_effects_once(engine, menu, publisher, monkeypatch):
    order = make_order([(menu['burger'], 2)], status=OrderStatus.DELIVERING)
    order_id = order.id
    # What a second caller read before the first delivery landed
    snapshot = SimpleNamespace(id=order_id, status='DELIVERING', products=list(order.products))

    engine.advance(order_id, 'DELIVERED')
    monkeypatch.setattr(engine.orders, 'get', lambda _id: snapshot)

    with pytest.raises(InvalidTransition):
        engine.advance(order_id, 'DELIVERED')

    monkeypatch.undo()
    db.session.expire_all()
    assert db.session.get(Order, order_id).status == 'DELIVERED'
    assert db.session.get(Product, menu['burger'].id).sold_count == 2
    assert len(publisher.named('status_update')) == 1


def test_failed_sales_update_reverts_delivery(engine, menu, publisher, monkeypatch):
    order = make_order([(menu['burger'], 2)], status=OrderStatus.DELIVERING)
    order_id = order.id

    def broken(product_id, quantity):
        raise OperationalError('UPDATE products', {}, Exception('disk I/O error'))

    monkeypatch.setattr(engine.catalog, 'increment_sold_count', broken)

    with pytest.raises(StoreUnavailable):
        engine.advance(order_id, 'DELIVERED')

    db.session.expire_all()
    assert db.session.get(Order, order_id).status == 'DELIVERING'
    assert db.session.get(Product, menu['burger'].id).sold_count == 0
    assert publisher.events == []

    # The delivery can be retried once the catalog is back
    monkeypatch.undo()
    assert engine.advance(order_id, 'DELIVERED').status == 'DELIVERED'
    db.session.expire_all()
    assert db.session.get(Product, menu['burger'].id).sold_count == 2
