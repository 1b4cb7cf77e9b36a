from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from .models import MonthlyStat
from .processor import get_yearly_comparison

TIME_RANGES = ("3", "6", "12", "all")


@dataclass
class ComparisonRow:
    month: str
    current: float
    previous_year: Optional[float] = None
    diff: Optional[float] = None
    diff_pct: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "month": self.month,
            "current": self.current,
            "previous_year": self.previous_year,
            "diff": self.diff,
            "diff_pct": self.diff_pct,
        }


def build_comparison_rows(stats: Sequence[MonthlyStat]) -> List[ComparisonRow]:
    """
    One row per month with the same month of the previous year next to it.

    diff is current - previous_year, diff_pct is that diff as a percentage
    of previous_year. Both stay None when there is no previous year, and
    diff_pct also when the previous year consumed exactly nothing.
    """
    rows = []
    for stat in stats:
        current = round(stat.consumption, 2)
        previous = get_yearly_comparison(stats, stat.month)
        row = ComparisonRow(month=stat.month, current=current)
        if previous is not None:
            row.previous_year = round(previous, 2)
            row.diff = round(current - row.previous_year, 2)
            if row.previous_year != 0:
                row.diff_pct = round(row.diff / row.previous_year * 100, 1)
        rows.append(row)
    return rows


def filter_time_range(rows: Sequence, time_range: str = "all") -> List:
    """
    Keeps the trailing window of the last 3/6/12 months, or everything for 'all'.
    """
    if time_range not in TIME_RANGES:
        raise ValueError(f"time range must be one of {TIME_RANGES}")
    if time_range == "all":
        return list(rows)
    return list(rows)[-int(time_range):]
