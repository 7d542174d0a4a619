"""Swap-window analysis.

The swap window is the run of months in which selling the car returns
money: it opens at the first month with a non-negative trade-in cash
position and closes the month before equity turns negative again. The
contract end is always a hard boundary, so a window that only opens after
it is empty.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from .data_models import ProjectionEntry, SwapWindow


def calculate_swap_window(projections: Sequence[ProjectionEntry], current_month: int) -> SwapWindow:
    """Scan a projection series once and summarise its green zone.

    ``start_month`` is reported as 0 when the series never reaches positive
    equity; ``is_in_window`` is then always false.
    """
    if not projections:
        return SwapWindow(0, 0, 0, Decimal("0"), current_month, False)

    start: Optional[int] = None
    reversal_end: Optional[int] = None
    contract_end: Optional[int] = None
    peak_month = projections[0].month
    peak_equity = projections[0].cash_position.trade_in

    for entry in projections:
        cash = entry.cash_position.trade_in
        if start is None and cash >= 0:
            start = entry.month
        elif start is not None and reversal_end is None and cash < 0:
            reversal_end = entry.month - 1
        if cash > peak_equity:
            peak_equity = cash
            peak_month = entry.month
        if contract_end is None and entry.is_contract_end:
            contract_end = entry.month

    end = reversal_end if reversal_end is not None else projections[-1].month
    if contract_end is not None:
        end = min(end, contract_end)

    return SwapWindow(
        start_month=start if start is not None else 0,
        end_month=end,
        peak_month=peak_month,
        peak_equity=peak_equity,
        current_month=current_month,
        is_in_window=start is not None and start <= current_month <= end,
    )
