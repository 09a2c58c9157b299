from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from kpi_engine.config import EngineConfig
from kpi_engine.data import RECORD_FIELDS, month_index_series, year_series


def _dataset_summary(df: pd.DataFrame, config: EngineConfig) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "rows": int(len(df)),
        "columns": [str(c) for c in df.columns],
        "missing_fields": [f for f in RECORD_FIELDS if f not in df.columns] if not df.empty else [],
        "unparsable_years": 0,
        "unknown_months": 0,
    }
    if df.empty:
        return summary
    if "Year" in df.columns:
        summary["unparsable_years"] = int(year_series(df).isna().sum())
    if "Month" in df.columns:
        summary["unknown_months"] = int((month_index_series(df, config) < 0).sum())
    return summary


def compute_debug(config: EngineConfig, ctx: Dict[str, Any]) -> Dict[str, Any]:
    historical: pd.DataFrame = ctx.get("historical", pd.DataFrame())
    weekly: pd.DataFrame = ctx.get("weekly", pd.DataFrame())
    return {
        "config": asdict(config),
        "loaded": ctx.get("loaded", {}),
        "dropped_rows": ctx.get("dropped_rows", {}),
        "period": ctx.get("period", {}),
        "latest_month_rows": int(len(ctx.get("latest_month", pd.DataFrame()))),
        "historical": _dataset_summary(historical, config),
        "weekly": _dataset_summary(weekly, config),
    }
