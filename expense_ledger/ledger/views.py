"""
View Engine

Derives everything the ledger screens show from the cached records plus
the ephemeral selection (month, year, page). The functions here are pure:
no I/O, no clock, same input same output. ``LedgerView`` is the only
stateful piece; it owns the selection and applies its correction rules on
every refresh.

DESIGN DECISION: The monthly total and the income status are computed
from the whole filtered set, never from the visible page.
"""

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from expense_ledger.ledger.months import calendar_month_number, calendar_year
from expense_ledger.models.record import ExpenseRecord

DEFAULT_PAGE_SIZE = 5


class IncomeStatus(str, Enum):
    """How a monthly total compares with the monthly income."""
    ZERO = "zero"            # nothing spent
    DEFAULT = "default"      # income unknown
    OK = "ok"                # below 80% of income
    ALERT = "alert"          # 80% up to 100%
    CRITICAL = "critical"    # income reached or exceeded


class AnnualSummary(BaseModel):
    """Twelve monthly buckets (index 0 = January) for one year."""
    model_config = ConfigDict(frozen=True)

    year: Optional[int] = None
    buckets: tuple[Decimal, ...] = Field(default=(Decimal("0"),) * 12)
    total_for_year: Decimal = Decimal("0")


class SelectionState(BaseModel):
    """Ephemeral selection; never persisted."""
    selected_month: str
    selected_year: Optional[int] = None
    current_page: int = Field(default=1, ge=1)


class LedgerSnapshot(BaseModel):
    """Everything derived for one render, computed in one pass."""
    model_config = ConfigDict(frozen=True)

    available_years: tuple[int, ...]
    selected_month: str
    selected_year: Optional[int]
    current_page: int
    total_pages: int
    has_pagination: bool
    filtered: tuple[ExpenseRecord, ...]
    page_records: tuple[ExpenseRecord, ...]
    monthly_total: Decimal
    monthly_income: Decimal
    income_status: IncomeStatus
    annual: AnnualSummary


# ----------------------------------------------------------------------
# Pure derivations
# ----------------------------------------------------------------------

def available_years(records: Iterable[ExpenseRecord]) -> list[int]:
    """Sorted distinct calendar years over all records (unfiltered)."""
    years = {calendar_year(record.date) for record in records}
    years.discard(None)
    return sorted(years)


def resolve_selected_year(years: Sequence[int], selected: Optional[int]) -> Optional[int]:
    """Keep ``selected`` if available, else snap to the latest year (or None)."""
    if selected in years:
        return selected
    return years[-1] if years else None


def filtered_records(
    records: Iterable[ExpenseRecord],
    month: str,
    year: Optional[int],
) -> list[ExpenseRecord]:
    """Records tagged with ``month`` whose date falls in ``year``."""
    if year is None:
        return []
    return [
        record for record in records
        if record.month == month and calendar_year(record.date) == year
    ]


def monthly_total(filtered: Iterable[ExpenseRecord]) -> Decimal:
    return sum((record.amount for record in filtered), Decimal("0"))


def total_pages(filtered: Sequence[ExpenseRecord], page_size: int = DEFAULT_PAGE_SIZE) -> int:
    return max(1, math.ceil(len(filtered) / page_size))


def paged_records(
    filtered: Sequence[ExpenseRecord],
    page: int,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[ExpenseRecord]:
    """The slice ``[(page-1)*page_size, page*page_size)``."""
    start = (page - 1) * page_size
    return list(filtered[start:start + page_size])


def clamp_page(page: int, pages: int) -> int:
    """Keep a page number inside ``[1, pages]``."""
    return max(1, min(page, pages))


def income_status_class(total: Decimal | float, income: Decimal | float) -> IncomeStatus:
    """
    Classify a monthly total against income.

    ``critical`` at or above income, ``alert`` from 80% of income.
    """
    total = Decimal(str(total))
    income = Decimal(str(income))
    if total <= 0:
        return IncomeStatus.ZERO
    if income <= 0:
        return IncomeStatus.DEFAULT

    ratio = total / income
    if ratio >= 1:
        return IncomeStatus.CRITICAL
    if ratio >= Decimal("0.8"):
        return IncomeStatus.ALERT
    return IncomeStatus.OK


def _bucket_month(record: ExpenseRecord) -> Optional[int]:
    try:
        return int(record.month)
    except ValueError:
        return calendar_month_number(record.date)


def annual_totals(records: Iterable[ExpenseRecord], year: Optional[int]) -> AnnualSummary:
    """
    Sum amounts per month over every record of ``year``.

    Ignores the month filter on purpose: the summary spans the whole year.
    The month tag picks the bucket; the date's month is used only when the
    tag is not a number.
    """
    buckets = [Decimal("0")] * 12
    if year is None:
        return AnnualSummary(year=None)

    for record in records:
        if calendar_year(record.date) != year:
            continue
        month = _bucket_month(record)
        if month is not None and 1 <= month <= 12:
            buckets[month - 1] += record.amount

    return AnnualSummary(
        year=year,
        buckets=tuple(buckets),
        total_for_year=sum(buckets, Decimal("0")),
    )


def format_currency(amount: Decimal | float, symbol: str = "R$") -> str:
    """Render ``45.5`` as ``R$ 45,50``."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{symbol} {value:.2f}".replace(".", ",")


# ----------------------------------------------------------------------
# Selection holder
# ----------------------------------------------------------------------

class LedgerView:
    """
    Owns the selection and recomputes the snapshot.

    Correction rules:
    - choosing a different month or year goes back to page 1
    - a selected year with no records snaps to the latest available year
    - when the filtered set shrinks, the page snaps down to the last page
    """

    def __init__(
        self,
        today: Optional[date] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        today = today or date.today()
        self.page_size = page_size
        self.state = SelectionState(
            selected_month=str(today.month),
            selected_year=today.year,
        )
        self._total_pages = 1

    def select_month(self, month: str) -> None:
        if month != self.state.selected_month:
            self.state.selected_month = month
            self.state.current_page = 1

    def select_year(self, year: int) -> None:
        if year != self.state.selected_year:
            self.state.selected_year = year
            self.state.current_page = 1

    def next_page(self) -> None:
        self.state.current_page = clamp_page(self.state.current_page + 1, self._total_pages)

    def previous_page(self) -> None:
        self.state.current_page = clamp_page(self.state.current_page - 1, self._total_pages)

    def refresh(
        self,
        records: Sequence[ExpenseRecord],
        monthly_income: Decimal = Decimal("0"),
    ) -> LedgerSnapshot:
        """Apply the correction rules and derive a fresh snapshot."""
        years = available_years(records)
        year = resolve_selected_year(years, self.state.selected_year)
        if year != self.state.selected_year:
            self.state.selected_year = year
            self.state.current_page = 1

        filtered = filtered_records(records, self.state.selected_month, year)
        pages = total_pages(filtered, self.page_size)
        self._total_pages = pages
        self.state.current_page = clamp_page(self.state.current_page, pages)

        total = monthly_total(filtered)
        return LedgerSnapshot(
            available_years=tuple(years),
            selected_month=self.state.selected_month,
            selected_year=year,
            current_page=self.state.current_page,
            total_pages=pages,
            has_pagination=len(filtered) > self.page_size,
            filtered=tuple(filtered),
            page_records=tuple(paged_records(filtered, self.state.current_page, self.page_size)),
            monthly_total=total,
            monthly_income=monthly_income,
            income_status=income_status_class(total, monthly_income),
            annual=annual_totals(records, year),
        )
