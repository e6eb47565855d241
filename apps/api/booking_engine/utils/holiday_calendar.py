"""Public holiday lookup used to pre-fill holiday blackout dates."""

from datetime import date
from functools import lru_cache

import holidays


@lru_cache(maxsize=10)
def get_holidays(year: int, country: str = "US") -> dict[date, str]:
    """Holiday dates and names for a year, cached per (year, country)."""
    return dict(sorted(holidays.country_holidays(country, years=year).items()))
