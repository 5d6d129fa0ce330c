# services/money.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
     """Coerce a value to a Decimal rounded to cents (half-up)."""
     if value is None:
          return ZERO
     if not isinstance(value, Decimal):
          # str() first so floats keep their printed value, not their binary one
          value = Decimal(str(value))
     return value.quantize(CENT, rounding=ROUND_HALF_UP)
