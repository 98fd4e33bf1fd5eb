"""
Statistics Engine

DESIGN DECISION: Statistics are PURE functions of a snapshot of the
record list. Nothing here reads storage, caches, or mutates its input.
The dashboard recomputes everything after each store change.

Same list in (by value) -> same numbers out.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from volttracker.models.bill import (
    BillStatistics,
    BillStatus,
    ChartPoint,
    ElectricBill,
)

ZERO = Decimal("0.00")
TWO_PLACES = Decimal("0.01")


def total_spent(bills: Iterable[ElectricBill]) -> Decimal:
    """Sum of amount_purchased over all bills."""
    return sum((bill.amount_purchased for bill in bills), ZERO)


def average_spent(bills: Sequence[ElectricBill]) -> Decimal:
    """Mean amount per bill; an empty list averages to zero."""
    if not bills:
        return ZERO
    return (total_spent(bills) / len(bills)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def average_duration_days(bills: Iterable[ElectricBill]) -> int:
    """
    Average number of days a purchase lasts.

    Only bills with both date_inserted and date_finished count. Each
    duration is the absolute day difference, so a finish date recorded
    before the insert date still yields a positive duration. The mean
    is rounded half-up to whole days. No eligible bills -> 0.
    """
    durations = [
        bill.duration_days
        for bill in bills
        if bill.date_inserted is not None and bill.date_finished is not None
    ]
    if not durations:
        return 0
    mean = Decimal(sum(durations)) / len(durations)
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def chart_series(bills: Iterable[ElectricBill]) -> list[ChartPoint]:
    """
    Points for the spending chart, oldest insertion first.

    sorted() is stable, so bills inserted on the same day keep
    their relative input order.
    """
    ordered = sorted(bills, key=lambda bill: bill.date_inserted)
    return [
        ChartPoint(
            date_inserted=bill.date_inserted,
            amount_purchased=bill.amount_purchased,
        )
        for bill in ordered
    ]


def compute_statistics(bills: Sequence[ElectricBill]) -> BillStatistics:
    """Compute every dashboard figure from one snapshot."""
    active = sum(1 for bill in bills if bill.status == BillStatus.ACTIVE)

    return BillStatistics(
        total_spent=total_spent(bills),
        avg_spent=average_spent(bills),
        average_duration_days=average_duration_days(bills),
        entry_count=len(bills),
        active_count=active,
        finished_count=len(bills) - active,
    )
