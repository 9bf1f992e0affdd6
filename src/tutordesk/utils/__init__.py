"""Utility functions for tutordesk."""

from tutordesk.utils.date_parser import parse_date, get_date_range, year_to_date
from tutordesk.utils.money import parse_amount, round_money, to_float
from tutordesk.utils.serialization import to_jsonable

__all__ = [
    "parse_date",
    "get_date_range",
    "year_to_date",
    "parse_amount",
    "round_money",
    "to_float",
    "to_jsonable",
]
