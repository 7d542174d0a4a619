"""Settlement calculator.

The settlement figure is what it costs to clear outstanding finance today:
the principal still owed plus an early-settlement interest penalty. Hire
Purchase amortises to zero; Personal Contract Purchase leaves the balloon
(GMFV) outstanding until the last month, so near the end of a PCP deal the
settlement is dominated by the balloon.
"""

from __future__ import annotations

from decimal import Decimal, getcontext

from .data_models import FinanceType, SettlementFigure
from .utils import Number, to_decimal

getcontext().prec = 28  # increase precision for financial calculations

# Early settlement charges roughly two months of interest (UK 58-day rule)
PENALTY_MONTHS = 2

# With this many months or fewer left, PCP settlement is balloon-led
BALLOON_DOMINANCE_MONTHS = 3

ZERO = Decimal("0")


def monthly_rate(apr: Number) -> Decimal:
    """Convert an APR in percent into a monthly decimal rate."""
    return to_decimal(apr) / Decimal(100) / Decimal(12)


def monthly_payment(loan_amount: Number, apr: Number, term_months: int, balloon_payment: Number = 0) -> Decimal:
    """Return the level monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the amount amortised over the term (the loan less any
    balloon), ``i`` is the monthly interest rate and ``n`` is the number of
    payments. When the interest rate is zero, the payment simplifies to
    ``P / n``. A non-positive term has no payments and returns zero.
    """
    if term_months <= 0:
        return ZERO
    principal = to_decimal(loan_amount) - to_decimal(balloon_payment)
    rate = monthly_rate(apr)
    if rate == 0:
        return principal / Decimal(term_months)
    factor = (1 + rate) ** term_months
    return principal * (rate * factor) / (factor - 1)


def _hp_principal_remaining(loan: Decimal, rate: Decimal, term_months: int, elapsed: int) -> Decimal:
    # P_remaining = P * [(1+r)^n - (1+r)^p] / [(1+r)^n - 1]
    factor = (1 + rate) ** term_months
    if factor == 1:
        return loan * (1 - Decimal(elapsed) / Decimal(term_months))
    factor_elapsed = (1 + rate) ** elapsed
    return loan * (factor - factor_elapsed) / (factor - 1)


def _pcp_principal_remaining(loan: Decimal, balloon: Decimal, term_months: int, elapsed: int) -> Decimal:
    principal_per_month = (loan - balloon) / Decimal(term_months)
    months_remaining = term_months - elapsed
    if months_remaining <= BALLOON_DOMINANCE_MONTHS:
        return balloon + principal_per_month * months_remaining
    # unamortised regular principal plus the balloon still to come
    return (loan - balloon) - principal_per_month * elapsed + balloon


def settlement_figure(
    original_loan: Number,
    payment: Number,
    apr: Number,
    term_months: int,
    months_elapsed: int,
    finance_type: FinanceType,
    balloon_payment: Number = 0,
) -> SettlementFigure:
    """Calculate the cost to clear finance after ``months_elapsed`` payments.

    Parameters
    ----------
    original_loan: Number
        Amount originally financed.
    payment: Number
        Contractual payment. The settlement follows the contract schedule
        rather than the payment figure, so this is informational only.
    apr: Number
        Annual rate in percent.
    term_months: int
        Contract length.
    months_elapsed: int
        Payments made so far. Clamped to ``[0, term_months]``.
    finance_type: FinanceType
        Cash always settles at zero.
    balloon_payment: Number
        PCP balloon (GMFV). Ignored for HP.

    Returns
    -------
    SettlementFigure
        Principal remaining, interest penalty, their total and the months
        remaining, every figure floored at zero.
    """
    if finance_type == FinanceType.CASH or term_months <= 0:
        return SettlementFigure(ZERO, ZERO, ZERO, 0)

    loan = to_decimal(original_loan)
    rate = monthly_rate(apr)
    elapsed = max(0, min(months_elapsed, term_months))
    months_remaining = max(0, term_months - elapsed)

    if finance_type == FinanceType.PCP:
        principal_remaining = _pcp_principal_remaining(loan, to_decimal(balloon_payment), term_months, elapsed)
    else:
        principal_remaining = _hp_principal_remaining(loan, rate, term_months, elapsed)

    interest_penalty = principal_remaining * rate * PENALTY_MONTHS

    return SettlementFigure(
        principal_remaining=max(ZERO, principal_remaining),
        interest_penalty=max(ZERO, interest_penalty),
        total_settlement=max(ZERO, principal_remaining + interest_penalty),
        months_remaining=months_remaining,
    )
