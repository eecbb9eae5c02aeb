#!/usr/bin/env python3

import argparse
import csv
import logging
import os
import re
import sys
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from analysis import quick_range, select_date_range, summarize
from calendar_grid import RawObservation
from config import TrendConfig
from pipeline import process_observations, records_to_dataframe

logger = logging.getLogger(__name__)


# ---------------------------
# Errors
# ---------------------------

class ObservationFormatError(ValueError):
    """The input file does not carry the columns we need."""


class InsufficientDataError(ValueError):
    """Fewer usable observations than the pipeline needs."""


# ---------------------------
# Utilities
# ---------------------------

MIN_OBSERVATIONS = 2

DATE_HEADER_KEYS = ("date", "日時")
WEIGHT_HEADER_KEYS = ("weight",)
FAT_HEADER_KEYS = ("fat",)

# Excel serial day 0
EXCEL_EPOCH = date(1899, 12, 30)

DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",     # 2025-08-19 14:30:00
    "%Y-%m-%d %H:%M",        # 2025-08-19 14:30
    "%Y/%m/%d %H:%M:%S",     # 2025/08/19 14:30:00
    "%Y/%m/%d %H:%M",        # 2025/08/19 14:30
    "%m/%d/%Y %H:%M:%S",     # 08/19/2025 14:30:00
    "%m/%d/%Y %H:%M",        # 08/19/2025 14:30
    "%Y-%m-%d",              # 2025-08-19
    "%Y/%m/%d",              # 2025/08/19
    "%m/%d/%Y",              # 08/19/2025
    "%m/%d/%y",              # 8/19/25
    "%d-%b-%Y",              # 19-Aug-2025
]


def parse_datetime(value: str) -> datetime:
    """Parse a datetime string in one of the supported formats"""
    v = str(value).strip()
    last_err: Optional[Exception] = None
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(v, fmt)
        except ValueError as e:
            last_err = e
    # ISO 8601 fallback (2025-08-19T14:30:00, offsets, fractions)
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        pass
    raise ValueError(f"Could not parse date: '{value}'. Supported formats include ISO 8601, YYYY/MM/DD, MM/DD/YYYY, DD-Mon-YYYY") from last_err


def parse_date(value: str) -> date:
    """Only the calendar day of a measurement matters"""
    return parse_datetime(value).date()


def parse_number(raw: object) -> Optional[float]:
    """Extract the first numeric value (handles strings like '20.4%' or '70 kg')"""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
        return None if value != value else value
    match = re.search(r"[-+]?(?:\d+\.\d+|\d+)", str(raw or ""))
    if not match:
        return None
    return float(match.group(0))


def excel_serial_to_date(serial: float) -> date:
    return EXCEL_EPOCH + timedelta(days=int(serial))


def _find_column(headers: Sequence[str], keys: Iterable[str]) -> Optional[int]:
    lowered = [str(h).strip().strip('"').lower() for h in headers]
    for idx, h in enumerate(lowered):
        if any(k in h for k in keys):
            return idx
    return None


def _resolve_columns(headers: Sequence[str]) -> Dict[str, int]:
    columns = {
        "date": _find_column(headers, DATE_HEADER_KEYS),
        "weight": _find_column(headers, WEIGHT_HEADER_KEYS),
        "fat": _find_column(headers, FAT_HEADER_KEYS),
    }
    missing = [name for name, idx in columns.items() if idx is None]
    if missing:
        raise ObservationFormatError(
            f"Header must contain 'date', 'weight' and 'fat' columns (missing: {', '.join(missing)})"
        )
    return columns  # type: ignore[return-value]


def _coerce_date(raw: object) -> Optional[date]:
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if raw != raw:
            return None
        return excel_serial_to_date(float(raw))
    try:
        return parse_date(str(raw))
    except ValueError:
        return None


def _build_observation(raw_date: object, raw_weight: object, raw_fat: object) -> Optional[RawObservation]:
    d = _coerce_date(raw_date)
    weight = parse_number(raw_weight)
    fat_percent = parse_number(raw_fat)
    if d is None or weight is None or fat_percent is None:
        logger.debug("Skipping row: %r, %r, %r", raw_date, raw_weight, raw_fat)
        return None
    if weight <= 0 or not 0 < fat_percent <= 100:
        logger.debug("Skipping out-of-range row: weight=%r, fat=%r", weight, fat_percent)
        return None
    return RawObservation.from_measurement(d, weight, fat_percent)


# ---------------------------
# Loading
# ---------------------------

def load_csv_observations(csv_path: str) -> List[RawObservation]:
    with open(csv_path, "r", newline="", encoding="utf-8-sig") as f:
        rows = [row for row in csv.reader(f) if row]
    if len(rows) < 2:
        return []
    columns = _resolve_columns(rows[0])
    observations: List[RawObservation] = []
    for row in rows[1:]:
        try:
            values = [row[columns["date"]], row[columns["weight"]], row[columns["fat"]]]
        except IndexError:
            logger.debug("Skipping short row: %r", row)
            continue
        obs = _build_observation(*values)
        if obs is not None:
            observations.append(obs)
    return observations


def load_excel_observations(path: str) -> List[RawObservation]:
    import pandas as pd

    df = pd.read_excel(path, sheet_name=0)
    if df.empty:
        return []
    headers = [str(c) for c in df.columns]
    columns = _resolve_columns(headers)
    date_col, weight_col, fat_col = (df.columns[columns[k]] for k in ("date", "weight", "fat"))
    observations: List[RawObservation] = []
    for raw_date, raw_weight, raw_fat in zip(df[date_col], df[weight_col], df[fat_col]):
        if isinstance(raw_date, pd.Timestamp):
            raw_date = None if pd.isna(raw_date) else raw_date.to_pydatetime()
        obs = _build_observation(raw_date, raw_weight, raw_fat)
        if obs is not None:
            observations.append(obs)
    return observations


def load_observations(path: str) -> List[RawObservation]:
    """Load observations from a CSV or Excel file (chosen by extension)"""
    if not os.path.exists(path):
        raise FileNotFoundError(f"No such file: {path}")
    if path.lower().endswith(".csv"):
        observations = load_csv_observations(path)
    else:
        observations = load_excel_observations(path)
    logger.info("Loaded %d observations from %s", len(observations), path)
    return observations


def require_sufficient_data(observations: Sequence[RawObservation], minimum: int = MIN_OBSERVATIONS) -> None:
    if len(observations) < minimum:
        raise InsufficientDataError(
            f"insufficient data: at least {minimum} valid records are required, got {len(observations)}"
        )


# ---------------------------
# CLI
# ---------------------------

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute daily fat mass and lean mass trends from body composition measurements.")
    parser.add_argument("input", help="CSV or Excel file with date, weight and fat%% columns")
    parser.add_argument("--output-csv", help="Write the daily records to this CSV file")
    parser.add_argument("--plot", help="Write a trend chart to this image path")
    parser.add_argument("--no-display", action="store_true", help="Do not display plots in a GUI")
    parser.add_argument("--start", type=str, help="First day to report (YYYY-MM-DD). Default: first measurement")
    parser.add_argument("--end", type=str, help="Last day to report (YYYY-MM-DD). Default: last measurement")
    parser.add_argument("--last-days", type=int, help="Report only the last N days (overrides --start/--end)")
    parser.add_argument("--print-table", action="store_true", help="Print table of date, fat/lean mass and trends")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    # Trend parameters (fall back to BODYCOMP_* environment variables, then defaults)
    parser.add_argument("--sigma-obs", type=float, help="Observation noise std of the trend filter")
    parser.add_argument("--sigma-proc", type=float, help="Process noise std of the trend filter")
    parser.add_argument("--hampel-window", type=int, help="Trailing window (days) for outlier detection")
    parser.add_argument("--hampel-threshold", type=float, help="Outlier threshold as a multiple of the MAD")
    parser.add_argument("--max-daily-change", type=float, help="Largest allowed daily trend movement")
    parser.add_argument("--ema-short", type=int, help="Short-term EMA span in days")
    parser.add_argument("--ema-long", type=int, help="Long-term EMA span in days")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> TrendConfig:
    return TrendConfig.from_env().replace(
        sigma_obs=args.sigma_obs,
        sigma_proc=args.sigma_proc,
        hampel_window=args.hampel_window,
        hampel_threshold=args.hampel_threshold,
        max_daily_change=args.max_daily_change,
        ema_span_short=args.ema_short,
        ema_span_long=args.ema_long,
    ).validate()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return 1

    try:
        observations = load_observations(args.input)
        require_sufficient_data(observations)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1

    records = process_observations(observations, config)

    start_date = None
    end_date = None
    if args.last_days is None:
        if args.start:
            try:
                start_date = parse_date(args.start)
            except ValueError as e:
                print(f"Warning: Could not parse start date '{args.start}': {e}")
        if args.end:
            try:
                end_date = parse_date(args.end)
            except ValueError as e:
                print(f"Warning: Could not parse end date '{args.end}': {e}")

    try:
        if args.last_days is not None:
            start_date, end_date = quick_range(records, args.last_days)
        visible = select_date_range(records, start_date, end_date)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    if not visible:
        print(f"No data in specified date range {start_date} to {end_date}")
        return 1

    summary = summarize(visible)
    print("=== Body Composition Trend ===")
    print(f"Days: {summary.days} ({summary.observed_days} measured) | Date range: {summary.first_date} to {summary.last_date}")
    print(f"Fat mass trend:  {summary.fat_trend_short:.3f} (long {summary.fat_trend_long:.3f}), change {summary.fat_trend_change:+.3f}")
    print(f"Lean mass trend: {summary.lean_trend_short:.3f} (long {summary.lean_trend_long:.3f}), change {summary.lean_trend_change:+.3f}")

    if args.print_table:
        print("\nDate,FatMass,FatTrend,FatTrendLong,LeanMass,LeanTrend,LeanTrendLong,FatPercent")
        for r in visible:
            print(f"{r.obs_date},{r.interpolated_fat_mass:.3f},{r.fat_trend_short:.3f},{r.fat_trend_long:.3f},"
                  f"{r.interpolated_lean_mass:.2f},{r.lean_trend_short:.3f},{r.lean_trend_long:.3f},"
                  f"{r.interpolated_fat_percent:.1f}")

    if args.output_csv:
        records_to_dataframe(visible).to_csv(args.output_csv, index=False)
        print(f"Daily records saved to: {args.output_csv}")

    if args.plot:
        from plotting import render_trend_plot
        try:
            if render_trend_plot(visible, args.plot, no_display=args.no_display):
                print(f"Plot saved to: {args.plot}")
        except Exception as e:
            print(f"Failed to render plot: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
