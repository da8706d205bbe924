"""
Module: quote_kernel.db.types
Responsibility: Annotated type aliases and the single sanctioned rounding
    function for monetary values.  Every model and the financial calculator
    use these definitions so precision cannot drift between call sites.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.

Invariants enforced:
    - Money amounts are quantized to MONEY_DECIMAL_PLACES with ROUND_HALF_UP.
    - No floats anywhere in the kernel.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

# Monetary amount column (stored with headroom, quantized to 2 places)
Money = Annotated[Decimal, Numeric(38, 9)]

# Percentage rate column, e.g. 12.5 for 12.5%
Rate = Annotated[Decimal, Numeric(9, 4)]

# Short identifier strings
ShortCode = Annotated[str, String(50)]

# Long text for descriptions
LongText = Annotated[str, String(4000)]


MONEY_DECIMAL_PLACES = 2
RATE_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for monetary values.

    Example:
        round_money(Decimal("10.125")) -> Decimal("10.13")
    """
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=rounding)


def decimal_places_of(value: Decimal) -> int:
    """Number of digits after the decimal point (0 for integral values)."""
    exponent = value.normalize().as_tuple().exponent
    if not isinstance(exponent, int) or exponent >= 0:
        return 0
    return -exponent
