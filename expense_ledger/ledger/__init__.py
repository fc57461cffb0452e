"""Ledger package: month resolution, record cache and view engine."""

from expense_ledger.ledger.cache import LedgerCache
from expense_ledger.ledger.months import (
    MONTHS,
    UnparseableDate,
    calendar_month_number,
    calendar_year,
    canonical_month,
    month_label,
    parse_calendar_date,
    resolve_month_for_mutation,
)
from expense_ledger.ledger.views import (
    DEFAULT_PAGE_SIZE,
    AnnualSummary,
    IncomeStatus,
    LedgerSnapshot,
    LedgerView,
    SelectionState,
    annual_totals,
    available_years,
    clamp_page,
    filtered_records,
    format_currency,
    income_status_class,
    monthly_total,
    paged_records,
    resolve_selected_year,
    total_pages,
)

__all__ = [
    "LedgerCache",
    # Months
    "MONTHS",
    "UnparseableDate",
    "calendar_month_number",
    "calendar_year",
    "canonical_month",
    "month_label",
    "parse_calendar_date",
    "resolve_month_for_mutation",
    # Views
    "DEFAULT_PAGE_SIZE",
    "AnnualSummary",
    "IncomeStatus",
    "LedgerSnapshot",
    "LedgerView",
    "SelectionState",
    "annual_totals",
    "available_years",
    "clamp_page",
    "filtered_records",
    "format_currency",
    "income_status_class",
    "monthly_total",
    "paged_records",
    "resolve_selected_year",
    "total_pages",
]
