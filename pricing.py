"""Checkout pricing: subtotal, flat-rate tax, threshold shipping and total."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple, Union

from pydantic import BaseModel

import config
from errors import ValidationError

CENTS = Decimal("0.01")

Number = Union[int, float, str, Decimal]


class PricingBreakdown(BaseModel):
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    def as_floats(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "shipping_cost": float(self.shipping),
            "total": float(self.total),
        }


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 19.99 from turning into 19.989999...
    return Decimal(str(value))


def calculate_pricing(
    lines: Iterable[Tuple[Number, int]],
    tax_rate: Number = config.TAX_RATE,
    free_shipping_threshold: Number = config.FREE_SHIPPING_THRESHOLD,
    shipping_cost: Number = config.SHIPPING_COST,
) -> PricingBreakdown:
    """Price a list of (unit price, quantity) pairs.

    Tax is rounded half-up to cents; shipping is waived once the subtotal
    reaches the threshold. The total is the exact sum of the three parts.
    """
    subtotal = Decimal("0")
    for price, quantity in lines:
        price = to_decimal(price)
        if price < 0:
            raise ValidationError("Price cannot be negative")
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")
        subtotal += price * quantity
    subtotal = subtotal.quantize(CENTS, rounding=ROUND_HALF_UP)

    tax = (subtotal * to_decimal(tax_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if subtotal >= to_decimal(free_shipping_threshold):
        shipping = Decimal("0.00")
    else:
        shipping = to_decimal(shipping_cost).quantize(CENTS, rounding=ROUND_HALF_UP)

    return PricingBreakdown(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )
