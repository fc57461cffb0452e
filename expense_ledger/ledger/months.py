"""
Month Resolver

Maps a calendar date to its canonical month tag ("1".."12").

CRITICAL: ``resolve_month_for_mutation`` is the only way any mutation
(create, update, admin edits) computes a record's month. Month tags are
never typed in by users, so filtering by month can never drift from the
record's date.
"""

from datetime import date, datetime
from typing import Optional


class UnparseableDate(ValueError):
    """A non-blank date text that is not an ISO calendar date."""

    def __init__(self, date_text: str):
        super().__init__(f"Unparseable date: {date_text!r}")
        self.date_text = date_text


# value, short label, long label
MONTHS: tuple[tuple[str, str, str], ...] = (
    ("1", "Jan", "January"),
    ("2", "Feb", "February"),
    ("3", "Mar", "March"),
    ("4", "Apr", "April"),
    ("5", "May", "May"),
    ("6", "Jun", "June"),
    ("7", "Jul", "July"),
    ("8", "Aug", "August"),
    ("9", "Sep", "September"),
    ("10", "Oct", "October"),
    ("11", "Nov", "November"),
    ("12", "Dec", "December"),
)


def parse_calendar_date(date_text: str) -> date:
    """
    Parse ``YYYY-MM-DD`` (or an ISO datetime, using its date part).

    Raises:
        UnparseableDate: If the text is neither
    """
    text = (date_text or "").strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise UnparseableDate(date_text) from None


def canonical_month(date_text: str) -> str:
    """Return the 1-based month of ``date_text`` as a tag without leading zero."""
    return str(parse_calendar_date(date_text).month)


def resolve_month_for_mutation(date_text: str, fallback_month: str) -> str:
    """
    Month tag for a record about to be written.

    A blank date keeps ``fallback_month`` unchanged (the selected month for
    a new record, the stored month for an edit).
    """
    if date_text and date_text.strip():
        return canonical_month(date_text)
    return fallback_month


def calendar_year(date_text: str) -> Optional[int]:
    """Year of ``date_text``, or None if it does not parse."""
    try:
        return parse_calendar_date(date_text).year
    except UnparseableDate:
        return None


def calendar_month_number(date_text: str) -> Optional[int]:
    """Month number (1-12) of ``date_text``, or None if it does not parse."""
    try:
        return parse_calendar_date(date_text).month
    except UnparseableDate:
        return None


def month_label(month_tag: str, short: bool = False) -> str:
    """Human label for a month tag; unknown tags read ``Month <tag>``."""
    for value, short_label, long_label in MONTHS:
        if value == month_tag:
            return short_label if short else long_label
    return f"Month {month_tag}"
