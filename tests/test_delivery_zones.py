from decimal import Decimal

import pytest

from foodapp import db
from foodapp.errors import OutOfServiceArea, ValidationError
from foodapp.models import DeliveryZone
from foodapp.repositories import DeliveryZoneRepository
from foodapp.services.zones import DeliveryZoneService, normalize_postal_code


@pytest.fixture
def zones(app):
    db.session.add(DeliveryZone(zip_code_start=12000000, zip_code_end=13000000, price=Decimal('7.00')))
    db.session.commit()
    return DeliveryZoneService(DeliveryZoneRepository(db.session))


def test_normalize_postal_code_strips_formatting():
    assert normalize_postal_code('12345-678') == 12345678
    assert normalize_postal_code('12345678') == 12345678


def test_normalize_postal_code_rejects_garbage():
    with pytest.raises(ValidationError):
        normalize_postal_code('abc-def')


def test_normalize_postal_code_rejects_too_many_digits():
    with pytest.raises(ValidationError):
        normalize_postal_code('12345-6789')
    with pytest.raises(ValidationError):
        normalize_postal_code('1' * 25)


def test_lookup_inside_zone(zones):
    assert zones.fee_for('12345678') == Decimal('7.00')


def test_lookup_on_range_bounds(zones):
    assert zones.lookup(12000000).price == Decimal('7.00')
    assert zones.lookup(13000000).price == Decimal('7.00')


def test_lookup_outside_every_zone(zones):
    with pytest.raises(OutOfServiceArea):
        zones.fee_for('99999-999')


def test_overlapping_zones_prefer_narrowest(zones):
    db.session.add(DeliveryZone(zip_code_start=12340000, zip_code_end=12349999, price=Decimal('3.50')))
    db.session.commit()

    assert zones.fee_for('12345-678') == Decimal('3.50')
    assert zones.fee_for('12500-000') == Decimal('7.00')


def test_equal_width_overlap_goes_to_oldest_zone(zones):
    db.session.add(DeliveryZone(zip_code_start=12000000, zip_code_end=13000000, price=Decimal('9.00')))
    db.session.commit()

    assert zones.fee_for('12345678') == Decimal('7.00')


def test_calculate_endpoint(client, zones, customer_headers):
    r = client.post('/delivery-calculate', json={'cep': '12345-678'}, headers=customer_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body['price'] == 7.0
    assert body['message'] == 'The delivery fee is 7.00'


def test_calculate_endpoint_out_of_area(client, zones, customer_headers):
    r = client.post('/delivery-calculate', json={'cep': '01000-000'}, headers=customer_headers)
    assert r.status_code == 400
    assert r.get_json()['kind'] == 'OutOfServiceArea'


def test_calculate_requires_token(client, zones):
    r = client.post('/delivery-calculate', json={'cep': '12345-678'})
    assert r.status_code == 401
    assert r.get_json()['kind'] == 'Unauthorized'


def test_admin_creates_and_lists_zones(client, admin_headers):
    r = client.post('/delivery-taxes', headers=admin_headers, json={
        'zip_code_start': 20000000,
        'zip_code_end': 20999999,
        'price': '12.50',
    })
    assert r.status_code == 201
    assert r.get_json()['delivery_tax']['price'] == 12.5

    r = client.get('/delivery-taxes', headers=admin_headers)
    assert r.status_code == 200
    assert [z['zip_code_start'] for z in r.get_json()['delivery_taxes']] == [20000000]


def test_inverted_range_is_rejected(client, admin_headers):
    r = client.post('/delivery-taxes', headers=admin_headers, json={
        'zip_code_start': 20999999,
        'zip_code_end': 20000000,
        'price': 5,
    })
    assert r.status_code == 400
    assert r.get_json()['kind'] == 'ValidationError'


def test_customers_cannot_create_zones(client, customer_headers):
    r = client.post('/delivery-taxes', headers=customer_headers, json={
        'zip_code_start': 1, 'zip_code_end': 2, 'price': 1,
    })
    assert r.status_code == 403
    assert r.get_json()['kind'] == 'Forbidden'


def test_zone_codes_wider_than_a_cep_are_rejected(client, admin_headers):
    r = client.post('/delivery-taxes', headers=admin_headers, json={
        'zip_code_start': 0,
        'zip_code_end': 10 ** 20,
        'price': 5,
    })
    assert r.status_code == 400
    assert r.get_json()['kind'] == 'ValidationError'
