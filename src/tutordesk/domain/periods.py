"""Reporting period buckets."""

from datetime import date
from enum import Enum


class Period(str, Enum):
    """Grouping granularity for period-bucketed views."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: "str | Period | None") -> "Period":
        """Resolve a period name; unknown or missing names fall back to month."""
        if isinstance(value, Period):
            return value
        if not value:
            return cls.MONTH
        name = value.strip().lower()
        return _ALIASES.get(name) or cls.MONTH

    def bucket_key(self, day: date) -> str:
        """Return the sortable bucket key for a date.

        Keys: ``YYYY-MM-DD``, ISO ``YYYY-Www``, ``YYYY-MM`` or ``YYYY``.
        """
        if self is Period.DAY:
            return day.strftime("%Y-%m-%d")
        if self is Period.WEEK:
            iso_year, iso_week, _ = day.isocalendar()
            return f"{iso_year:04d}-W{iso_week:02d}"
        if self is Period.MONTH:
            return day.strftime("%Y-%m")
        return f"{day.year:04d}"


_ALIASES = {
    "day": Period.DAY,
    "daily": Period.DAY,
    "week": Period.WEEK,
    "weekly": Period.WEEK,
    "month": Period.MONTH,
    "monthly": Period.MONTH,
    "year": Period.YEAR,
    "yearly": Period.YEAR,
}
