# ingres_core/years.py
from typing import Iterable, List, Optional, Sequence, TypeVar

from ingres_core.config import settings
from ingres_core.models import StatRecord, YearSpec, YearWindow

R = TypeVar("R", bound=StatRecord)


def _in_range(year: str, from_year: Optional[str], to_year: Optional[str]) -> bool:
    # YYYY-YYYY labels sort chronologically as plain strings
    if from_year and year < from_year:
        return False
    if to_year and year > to_year:
        return False
    return True


def resolve_years(spec: YearSpec, available_years: Sequence[str], default_year: Optional[str] = None) -> YearWindow:
    """Turn a request's year selection into the concrete years to query.

    Years the store does not have are dropped silently. ``historical`` is set
    whenever a list or range was asked for, however many years survive.
    """
    available = sorted(set(available_years))
    target_year = spec.year or (available[-1] if available else (default_year or settings.default_year))

    if not spec.is_historical:
        return YearWindow(historical=False, years=[target_year], target_year=target_year)

    if spec.has_list:
        wanted = set(spec.specific_years)
        years = [y for y in available if y in wanted]
    else:
        years = [y for y in available if _in_range(y, spec.from_year, spec.to_year)]

    return YearWindow(historical=True, years=years, target_year=target_year)


def filter_records_by_year(records: Iterable[R], spec: YearSpec) -> List[R]:
    records = list(records)
    if spec.has_list:
        wanted = set(spec.specific_years)
        return [r for r in records if r.year in wanted]
    if spec.has_range:
        return [r for r in records if _in_range(r.year, spec.from_year, spec.to_year)]
    return records


def percent_change(old_value, new_value) -> str:
    """'+12.5%' style change between two measurements, 'N/A' if not computable."""
    try:
        old_num = float(old_value)
        new_num = float(new_value)
    except (TypeError, ValueError):
        return "N/A"
    if old_num == 0 or old_num != old_num or new_num != new_num:
        return "N/A"
    change = (new_num - old_num) / old_num * 100
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.1f}%"
