# backend/run_local.py
from backend.lib.meter_core.io import parse_csv_string, parse_readings_json, filter_by_type
from backend.lib.meter_core.processor import compute_monthly_consumption
from backend.lib.meter_core.report import build_comparison_rows
import sys
from pathlib import Path

def main(path, meter_type="electricity"):
    text = Path(path).read_text()
    if path.endswith(".csv"):
        readings = parse_csv_string(text)
    else:
        readings = parse_readings_json(text)
    readings = filter_by_type(readings, meter_type)
    print(f"Parsed {len(readings)} {meter_type} readings")
    rows = build_comparison_rows(compute_monthly_consumption(readings))
    if not rows:
        print("Not enough data for monthly statistics (at least 2 readings needed).")
    for row in rows:
        line = f" - {row.month}: {row.current:.2f}"
        if row.diff is not None:
            line += f" (previous year {row.previous_year:.2f}, {row.diff:+.2f})"
        print(line)

if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else "tests/sample.json"
    meter_type = sys.argv[2] if len(sys.argv) > 2 else "electricity"
    main(path, meter_type)
