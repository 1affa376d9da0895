import logging
from decimal import ROUND_HALF_UP, Decimal

import stripe

from foodapp.errors import PaymentError
from foodapp.schemas import PaymentIntentCreate, parse

logger = logging.getLogger(__name__)


def calculate_order_amount(products, delivery_fee=None):
    """Cart total in minor currency units, rounded to an integer"""
    products_total = sum((item.price * item.quantity for item in products), Decimal(0))
    total = products_total + Decimal(delivery_fee or 0)
    return int(total.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class PaymentService:
    def __init__(self, secret_key, currency='brl'):
        self.secret_key = secret_key
        self.currency = currency

    def create_payment_intent(self, payload):
        """Create a Stripe payment intent for the cart in ``payload``"""
        data = parse(PaymentIntentCreate, payload)
        amount = calculate_order_amount(data.products, data.delivery_fee)

        if not self.secret_key:
            raise PaymentError('Stripe not configured')

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=amount,
                currency=self.currency,
                automatic_payment_methods={'enabled': True},
            )
        except stripe.StripeError as e:
            logger.error(f"Payment intent creation error: {e}")
            raise PaymentError(getattr(e, 'user_message', None) or str(e)) from e

        logger.info(f"Created payment intent {intent.id} for {amount} {self.currency}")
        return {
            'clientSecret': intent.client_secret,
            'dpmCheckerLink': (
                'https://dashboard.stripe.com/settings/payment_methods/review'
                f'?transaction_id={intent.id}'
            ),
        }
