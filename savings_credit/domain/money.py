"""Monetary value helpers"""

from decimal import Decimal, ROUND_HALF_UP

from savings_credit.domain.exceptions import BadRequestError

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize to cents, rounding half up"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def exact_money(value) -> Decimal:
    """
    Accept an amount only if it is already a whole number of cents.

    Raises:
        BadRequestError: the amount has a fractional cent

    Examples:
        exact_money("10.50") -> Decimal("10.50")
        exact_money("10.005") -> BadRequestError
    """
    amount = Decimal(value)
    if amount != amount.quantize(CENT):
        raise BadRequestError("Amount cannot have more than 2 decimal places")
    return amount.quantize(CENT)
