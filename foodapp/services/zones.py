import logging
import re

from foodapp.errors import OutOfServiceArea, ValidationError
from foodapp.models import DeliveryZone
from foodapp.schemas import DeliveryQuote, DeliveryZoneCreate, parse

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r'\D')
CEP_DIGITS = 8


def normalize_postal_code(cep):
    """Strip formatting from a cep, e.g. '12345-678' -> 12345678"""
    digits = _NON_DIGITS.sub('', cep or '')
    if not digits:
        raise ValidationError('Invalid postal code', details=['cep: must contain digits'])
    if len(digits) > CEP_DIGITS:
        raise ValidationError('Invalid postal code', details=[f"cep: must have at most {CEP_DIGITS} digits"])
    return int(digits)


class DeliveryZoneService:
    def __init__(self, zones):
        self.zones = zones

    def lookup(self, postal_code):
        """Zone serving a numeric postal code, or OutOfServiceArea"""
        zone = self.zones.find_covering(postal_code)
        if zone is None:
            logger.info(f"No delivery zone covers postal code {postal_code}")
            raise OutOfServiceArea()
        return zone

    def fee_for(self, cep):
        return self.lookup(normalize_postal_code(cep)).price

    def quote(self, payload):
        data = parse(DeliveryQuote, payload)
        price = self.fee_for(data.cep)
        return {
            'price': float(price),
            'message': f"The delivery fee is {price:.2f}",
        }

    def create(self, payload):
        data = parse(DeliveryZoneCreate, payload)
        zone = DeliveryZone(
            zip_code_start=data.zip_code_start,
            zip_code_end=data.zip_code_end,
            price=data.price,
        )
        self.zones.add(zone)
        self.zones.commit()
        logger.info(f"Created delivery zone {zone.zip_code_start}-{zone.zip_code_end} at {zone.price}")
        return zone

    def list(self):
        return self.zones.list_all()
