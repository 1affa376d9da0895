"""
Request payload schemas.

Every request body is validated before any state changes. ``parse`` turns
pydantic's error list into a single ``ValidationError`` carrying every field
problem, not just the first one.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, model_validator
from pydantic import ValidationError as PydanticValidationError

from foodapp.errors import ValidationError


def _format_error(error):
    location = '.'.join(str(part) for part in error.get('loc', ()))
    message = error.get('msg', 'Invalid value')
    return f"{location}: {message}" if location else message


def parse(schema, data):
    """Validate ``data`` against ``schema`` or raise ValidationError"""
    if data is None:
        raise ValidationError('Request body is required', details=['body: Field required'])
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        details = [_format_error(error) for error in e.errors()]
        raise ValidationError('Validation failed', details=details) from e


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra='ignore')


# Orders (JSON bodies, no type coercion)

class AddressIn(_Payload):
    cep: StrictStr = Field(min_length=8, max_length=9)
    street: StrictStr = Field(min_length=1)
    number: StrictStr = Field(min_length=1)
    neighborhood: StrictStr = Field(min_length=1)
    city: StrictStr = Field(min_length=1)
    complement: Optional[StrictStr] = None


class LineItemIn(_Payload):
    id: StrictInt
    quantity: StrictInt = Field(gt=0)
    observation: Optional[StrictStr] = None


class OrderCreate(_Payload):
    observation: Optional[StrictStr] = None
    payment_method: StrictStr = Field(alias='paymentMethod', min_length=1)
    payment_id: Optional[StrictStr] = Field(default=None, alias='paymentId')
    order_type: Literal['delivery', 'takeout'] = Field(alias='orderType')
    products: List[LineItemIn] = Field(min_length=1)
    address: Optional[AddressIn] = None

    @model_validator(mode='after')
    def check_conditional_fields(self):
        problems = []
        if self.payment_method == 'card' and not self.payment_id:
            problems.append('paymentId is required for card payments')
        if self.order_type == 'delivery' and self.address is None:
            problems.append('address is required for delivery orders')
        if problems:
            raise ValueError('; '.join(problems))
        return self


class StatusUpdate(_Payload):
    status: StrictStr = Field(min_length=1)


class MessageCreate(_Payload):
    text: StrictStr = Field(min_length=1)


class RatingIn(_Payload):
    stars: int = Field(ge=1, le=5)


# Delivery zones

class DeliveryZoneCreate(_Payload):
    zip_code_start: int = Field(ge=0, le=99999999)
    zip_code_end: int = Field(ge=0, le=99999999)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)

    @model_validator(mode='after')
    def check_range(self):
        if self.zip_code_start > self.zip_code_end:
            raise ValueError('zip_code_start must not be greater than zip_code_end')
        return self


class DeliveryQuote(_Payload):
    cep: str = Field(min_length=8, max_length=9)


# Catalog (multipart form fields, so values arrive as strings)

class CategoryCreate(_Payload):
    name: str = Field(min_length=1, max_length=100)


class CategoryUpdate(_Payload):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class ProductCreate(_Payload):
    name: str = Field(min_length=1, max_length=255)
    price: int = Field(ge=0)
    category_id: int
    offer: bool = False
    description: str = Field(min_length=1)
    available: bool = True


class ProductUpdate(_Payload):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    offer: Optional[bool] = None
    description: Optional[str] = Field(default=None, min_length=1)
    available: Optional[bool] = None


# Dashboard

class ExpenseCreate(_Payload):
    description: str = Field(min_length=1, max_length=255)
    value: Decimal = Field(max_digits=12, decimal_places=2)
    date: datetime


# Payments

class PaymentItem(_Payload):
    price: Decimal
    quantity: Decimal


class PaymentIntentCreate(_Payload):
    products: List[PaymentItem]
    delivery_fee: Optional[Decimal] = Field(default=None, alias='deliveryFee')
