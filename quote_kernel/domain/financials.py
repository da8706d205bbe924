"""
Financials -- the single quote amount calculator.

Responsibility:
    Derives taxable, tax and final amounts from a quote's driving fields
    (total, discount, tax rate).  Both the creation and the update paths
    call ``compute``; ``tax_amount`` and ``final_amount`` are never accepted
    from callers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ``final_amount == round2((total - discount) * (1 + tax_rate / 100))``
      with ROUND_HALF_UP.
    - ``0 <= discount <= total`` and ``0 <= tax_rate <= 100``.

Failure modes:
    - ValidationError naming the offending field (total_amount,
      discount_amount or tax_rate).

Usage:
    amounts = compute(Decimal("1000"), Decimal("100"), Decimal("10"))
    amounts.taxable_amount  # Decimal("900.00")
    amounts.tax_amount      # Decimal("90.00")
    amounts.final_amount    # Decimal("990.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from quote_kernel.db.types import (
    HUNDRED,
    MONEY_DECIMAL_PLACES,
    RATE_DECIMAL_PLACES,
    ZERO,
    decimal_places_of,
    round_money,
)
from quote_kernel.exceptions import ValidationError


@dataclass(frozen=True)
class QuoteAmounts:
    """Monetary figures of a quote.  Only ``compute`` builds one."""

    total_amount: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    final_amount: Decimal


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Coerce a payload value into a finite Decimal.

    Accepts Decimal, int and numeric strings.  Floats are refused: they
    cannot represent cents exactly.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(field, f"must be a Decimal, int or numeric string, got {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(field, f"not a number: {value!r}") from None
    else:
        raise ValidationError(field, f"must be a Decimal, int or numeric string, got {type(value).__name__}")

    if not result.is_finite():
        raise ValidationError(field, "must be a finite number")
    return result


def _money(value: Any, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise ValidationError(field, "must not be negative")
    if decimal_places_of(amount) > MONEY_DECIMAL_PLACES:
        raise ValidationError(
            field, f"must have at most {MONEY_DECIMAL_PLACES} decimal places"
        )
    return round_money(amount)


def _rate(value: Any) -> Decimal:
    rate = to_decimal(value, "tax_rate")
    if rate < ZERO or rate > HUNDRED:
        raise ValidationError("tax_rate", "must be between 0 and 100")
    if decimal_places_of(rate) > RATE_DECIMAL_PLACES:
        raise ValidationError(
            "tax_rate", f"must have at most {RATE_DECIMAL_PLACES} decimal places"
        )
    return rate


def compute(total_amount: Any, discount_amount: Any, tax_rate: Any) -> QuoteAmounts:
    """
    Compute the derived amounts of a quote.

    Preconditions:
        total_amount >= 0, 0 <= discount_amount <= total_amount,
        0 <= tax_rate <= 100 (a percentage, e.g. 10 for 10%).

    Postconditions:
        taxable = total - discount
        tax     = round2(taxable * tax_rate / 100)
        final   = taxable + tax

    Raises:
        ValidationError: naming the first offending field.
    """
    total = _money(total_amount, "total_amount")
    discount = _money(discount_amount, "discount_amount")
    rate = _rate(tax_rate)

    if discount > total:
        raise ValidationError("discount_amount", "must not exceed total_amount")

    taxable = total - discount
    tax = round_money(taxable * rate / HUNDRED)

    return QuoteAmounts(
        total_amount=total,
        discount_amount=discount,
        tax_rate=rate,
        taxable_amount=taxable,
        tax_amount=tax,
        final_amount=round_money(taxable + tax),
    )
