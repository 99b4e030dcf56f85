"""Date manipulation utilities"""

from datetime import datetime
from typing import Dict, Iterable, Tuple, TypeVar

V = TypeVar("V")


def month_key(moment: datetime) -> str:
    """Calendar month bucket, e.g. 2024-03"""
    return f"{moment.year}-{moment.month:02d}"


def sum_by_month(items: Iterable[Tuple[datetime, V]]) -> Dict[str, V]:
    """Total values per calendar month, keys in chronological order"""
    totals: Dict[str, V] = {}
    for moment, value in items:
        key = month_key(moment)
        totals[key] = totals[key] + value if key in totals else value
    return dict(sorted(totals.items()))
