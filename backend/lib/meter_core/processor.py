from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from .models import MonthlyStat, Reading, parse_date


def compute_monthly_consumption(readings: Iterable[Reading]) -> List[MonthlyStat]:
    """
    Converts cumulative meter readings into monthly consumption estimates.

    Each interval between two consecutive readings (sorted by date) is spread
    evenly over its days: the daily average is booked on every day from the
    first reading up to, but not including, the second one. The per-day
    amounts are then summed per 'YYYY-MM'.

    Readings are not filtered by type, pass readings of a single meter.
    Same-day pairs are skipped and a falling counter yields negative
    consumption. An unparseable date raises ValueError before anything is
    allocated.
    """
    # Parse every date up front so one bad record rejects the whole series
    points = [(parse_date(r.date), r.value) for r in readings]
    if len(points) < 2:
        return []

    # Same-day readings are ordered by value, so input order never matters
    points = sorted(points)

    monthly = defaultdict(float)
    for (start_date, start_value), (end_date, end_value) in zip(points, points[1:]):
        consumption = end_value - start_value
        days_diff = (end_date - start_date).days
        if days_diff <= 0:
            continue

        daily_average = consumption / days_diff
        current = start_date
        for _ in range(days_diff):
            monthly[current.strftime("%Y-%m")] += daily_average
            current += timedelta(days=1)

    return [
        MonthlyStat(month=month, consumption=consumption, days=0)
        for month, consumption in sorted(monthly.items())
    ]


def previous_year_month(month: str) -> str:
    """
    'YYYY-MM' -> same month one year earlier, e.g. '2024-02' -> '2023-02'.
    """
    parsed = datetime.strptime(month, "%Y-%m")
    if parsed.year <= 1:
        raise ValueError(f"No previous year for month {month}")
    return f"{parsed.year - 1:04d}-{parsed.month:02d}"


def get_yearly_comparison(stats: Iterable[MonthlyStat], current_month: str) -> Optional[float]:
    """
    Returns the consumption of the same month one year before current_month,
    or None when the series has no such month.
    """
    if datetime.strptime(current_month, "%Y-%m").year <= 1:
        return None
    last_year_key = previous_year_month(current_month)
    for stat in stats:
        if stat.month == last_year_key:
            return stat.consumption
    return None
