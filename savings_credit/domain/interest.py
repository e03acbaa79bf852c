"""Credit interest and remaining-balance arithmetic"""

from decimal import Decimal
from typing import Iterable

from savings_credit.domain.models import RepaymentSummary
from savings_credit.domain.money import to_money


def calculate_total_owed(principal: Decimal, interest_rate: Decimal) -> Decimal:
    """
    Principal plus flat interest over the life of the credit.

    Example:
        1000 at 5.00% -> 1050.00
    """
    return to_money(Decimal(principal) * (1 + Decimal(interest_rate) / 100))


def summarize_repayments(
    principal: Decimal,
    interest_rate: Decimal,
    repayments: Iterable[Decimal],
) -> RepaymentSummary:
    """
    Derive the repayment position from the repayment history.

    The remaining balance is never stored; it is always recomputed from the
    live list of repayments so that it cannot drift from the log.
    """
    total_owed = calculate_total_owed(principal, interest_rate)
    total_repaid = to_money(sum((Decimal(amount) for amount in repayments), Decimal("0")))
    return RepaymentSummary(
        total_owed=total_owed,
        total_repaid=total_repaid,
        remaining=total_owed - total_repaid,
    )
