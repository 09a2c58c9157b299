from __future__ import annotations

import logging
import math
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from kpi_engine.config import EngineConfig, normalize_config


logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("KPI_DASHBOARD_DATA_DIR") or Path(__file__).resolve().parents[1])
HISTORICAL_FILE = "historical_log.csv"
WEEKLY_FILE = "live_progress.csv"
DELIMITER = ","

RECORD_FIELDS = [
    "KPI",
    "Platform",
    "Channel",
    "Month",
    "Year",
    "Actual",
    "Target",
    "MTD_Actual",
    "Full_Month_Target",
    "Days_Passed",
    "Total_Days_in_Month",
]

_LINE_BREAK = re.compile(r"\r?\n")
_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")


# ---------------- Normalizer ----------------
def parse_csv(text: Optional[str], delimiter: str = DELIMITER) -> pd.DataFrame:
    """Parse delimited text into a frame of string/None values.

    The first line holds the field names. Rows whose field count differs from
    the header's are dropped whole; blank values become ``None``. No numeric
    coercion happens here.
    """
    if not text or not text.strip():
        return pd.DataFrame()
    lines = _LINE_BREAK.split(text.strip())
    if len(lines) < 2:
        return pd.DataFrame()

    headers = [h.strip() for h in lines[0].split(delimiter)]
    columns = list(dict.fromkeys(headers))
    records: List[Dict[str, Optional[str]]] = []
    dropped = 0
    for line in lines[1:]:
        values = line.split(delimiter)
        if len(values) != len(headers):
            dropped += 1
            continue
        records.append({header: (value.strip() or None) for header, value in zip(headers, values)})

    if dropped:
        logger.debug("Dropped %d malformed row(s) out of %d", dropped, len(lines) - 1)

    df = pd.DataFrame(records, columns=columns, dtype=object)
    df = df.where(df.notna(), None)
    df.attrs["dropped_rows"] = dropped
    return df


# ---------------- Coercion helpers ----------------
def to_number(value: object) -> Optional[float]:
    """Leading-number coercion: ``"12.5kg"`` -> 12.5, anything unparsable -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        out = float(value)
        return out if math.isfinite(out) else None
    match = _NUMBER_PREFIX.match(str(value).strip())
    if not match:
        return None
    out = float(match.group(0))
    return out if math.isfinite(out) else None


def to_int(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value).strip())
    if not match:
        return None
    return int(match.group(0))


def column_as_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series([None] * len(df), index=df.index, dtype=object)
    return df[col]


def numeric_series(df: pd.DataFrame, col: str) -> pd.Series:
    """Per-row numeric view of ``col``; missing or unparsable values count as 0."""
    values = column_as_series(df, col).map(to_number)
    return pd.to_numeric(values, errors="coerce").fillna(0.0).astype(float)


def year_series(df: pd.DataFrame) -> pd.Series:
    return pd.to_numeric(column_as_series(df, "Year").map(to_int), errors="coerce")


def month_index_series(df: pd.DataFrame, config: EngineConfig) -> pd.Series:
    return column_as_series(df, "Month").map(config.month_index).astype(int)


def format_value(kpi: str, value: object, for_chart: bool = False) -> str:
    num = to_number(value)
    if num is None:
        return "N/A"
    lower = (kpi or "").lower()
    if "share" in lower or "rate" in lower:
        return f"{num:.1f}%"
    if "frequency" in lower or "uc per order" in lower:
        return f"{num:.1f}"
    if for_chart and num >= 1000:
        return f"{num / 1000:.{0 if num >= 10000 else 1}f}K"
    return f"{num:,.0f}"


# ---------------- Period selection ----------------
def latest_period(df: pd.DataFrame, config: EngineConfig) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(year, month_index)`` of the most recent period present."""
    if df.empty:
        return None, None
    years = year_series(df)
    if years.dropna().empty:
        return None, None
    latest_year = int(years.max())
    months = month_index_series(df[years == latest_year], config)
    months = months[months > -1]
    if months.empty:
        return latest_year, None
    return latest_year, int(months.max())


def latest_month_data(df: pd.DataFrame, config: EngineConfig) -> pd.DataFrame:
    latest_year, latest_month = latest_period(df, config)
    if latest_year is None or latest_month is None:
        return df.iloc[0:0].copy()
    mask = (year_series(df) == latest_year) & (month_index_series(df, config) == latest_month)
    return df[mask].copy()


def elapsed_days(weekly: pd.DataFrame) -> Tuple[float, float]:
    """Days passed / days in month as reported on the first weekly record."""
    if weekly.empty:
        return 0.0, 0.0
    first = weekly.iloc[0]
    days_passed = to_number(first.get("Days_Passed")) or 0.0
    total_days = to_number(first.get("Total_Days_in_Month")) or 0.0
    return days_passed, total_days


# ---------------- Loaders ----------------
def get_source_files(data_dir: Optional[Path | str] = None) -> Dict[str, Path]:
    base = Path(data_dir) if data_dir is not None else DATA_DIR
    return {"historical": base / HISTORICAL_FILE, "weekly": base / WEEKLY_FILE}


def file_signature(files: Dict[str, Path]) -> Tuple[Tuple[str, str, Optional[float]], ...]:
    sig = []
    for name, path in files.items():
        try:
            mtime: Optional[float] = path.stat().st_mtime
        except OSError:
            mtime = None
        sig.append((name, str(path), mtime))
    return tuple(sig)


def read_dataset_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        logger.warning("Failed to load %s: %s", path.name, exc)
        return None


# ---------------- Public API ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, str, Optional[float]], ...]) -> Dict[str, object]:
    ctx: Dict[str, object] = {"files": [], "loaded": {}}
    for name, path_str, _ in files_sig:
        path = Path(path_str)
        text = read_dataset_text(path)
        df = parse_csv(text)
        ctx["loaded"][name] = text is not None  # type: ignore[index]
        ctx[name] = df
        if text is not None:
            ctx["files"].append(path.name)  # type: ignore[union-attr]
            logger.info("Loaded %s: %d record(s)", path.name, len(df))
    return ctx


def load_dashboard_data(data_dir: Optional[Path | str] = None) -> Dict[str, object]:
    """Load both datasets independently; a failed one comes back empty."""
    return _load_dashboard_data_cached(file_signature(get_source_files(data_dir)))


def prepare_context(config: dict | EngineConfig | None, data_ctx: Dict[str, object]) -> Dict[str, object]:
    cfg = config if isinstance(config, EngineConfig) else normalize_config(config)
    historical: pd.DataFrame = data_ctx.get("historical", pd.DataFrame()).copy()
    weekly: pd.DataFrame = data_ctx.get("weekly", pd.DataFrame()).copy()

    latest_year, latest_month_idx = latest_period(historical, cfg)
    latest_month = latest_month_data(historical, cfg)
    days_passed, total_days = elapsed_days(weekly)

    return {
        "config": cfg,
        "historical": historical,
        "weekly": weekly,
        "latest_month": latest_month,
        "period": {
            "year": latest_year,
            "month_index": latest_month_idx,
            "month": cfg.month_order[latest_month_idx] if latest_month_idx is not None else None,
        },
        "days_passed": days_passed,
        "total_days": total_days,
        "loaded": dict(data_ctx.get("loaded", {}) or {}),
        "dropped_rows": {
            "historical": int(historical.attrs.get("dropped_rows", 0)),
            "weekly": int(weekly.attrs.get("dropped_rows", 0)),
        },
    }
