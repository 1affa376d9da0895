from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from foodapp.errors import PaymentError
from foodapp.schemas import PaymentItem
from foodapp.services.payments import PaymentService, calculate_order_amount


@pytest.fixture
def stripe_calls(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id='pi_test_123', client_secret='pi_test_123_secret_abc')

    monkeypatch.setattr(stripe.PaymentIntent, 'create', fake_create)
    return calls


def test_amount_includes_delivery_fee():
    items = [
        PaymentItem(price=Decimal(1000), quantity=Decimal(2)),
        PaymentItem(price=Decimal(500), quantity=Decimal(1)),
    ]
    assert calculate_order_amount(items, Decimal(300)) == 2800
    assert calculate_order_amount(items) == 2500


def test_amount_rounds_half_up():
    items = [PaymentItem(price=Decimal('10.5'), quantity=Decimal(1))]
    assert calculate_order_amount(items) == 11


def test_create_payment_intent(client, customer_headers, stripe_calls):
    r = client.post('/create_payment_intent', headers=customer_headers, json={
        'products': [{'price': 1000, 'quantity': 2}],
        'deliveryFee': 300,
    })

    assert r.status_code == 200
    body = r.get_json()
    assert body['clientSecret'] == 'pi_test_123_secret_abc'
    assert body['dpmCheckerLink'].endswith('transaction_id=pi_test_123')

    call, = stripe_calls
    assert call['amount'] == 2300
    assert call['currency'] == 'brl'
    assert call['automatic_payment_methods'] == {'enabled': True}


def test_stripe_failure_becomes_payment_error(client, customer_headers, monkeypatch):
    def failing_create(**kwargs):
        raise stripe.StripeError('Your card was declined')

    monkeypatch.setattr(stripe.PaymentIntent, 'create', failing_create)

    r = client.post('/create_payment_intent', headers=customer_headers, json={
        'products': [{'price': 1000, 'quantity': 1}],
    })

    assert r.status_code == 400
    assert r.get_json()['kind'] == 'PaymentError'


def test_missing_secret_key():
    service = PaymentService(None)
    with pytest.raises(PaymentError):
        service.create_payment_intent({'products': [{'price': 1, 'quantity': 1}]})


def test_products_are_required(client, customer_headers, stripe_calls):
    r = client.post('/create_payment_intent', headers=customer_headers, json={'deliveryFee': 300})

    assert r.status_code == 400
    assert stripe_calls == []
