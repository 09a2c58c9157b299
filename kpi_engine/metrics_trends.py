from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from kpi_engine.aggregation import channel_is, kpi_is, platform_is, select, ytd_rollup
from kpi_engine.config import EngineConfig
from kpi_engine.data import column_as_series, to_int, to_number

# Channel values that stand for the platform-level row in the trend filters.
TOTAL_CHANNEL_ALIASES = {None, "N/A"}


def _unique(series: pd.Series) -> List[Optional[str]]:
    return list(dict.fromkeys(None if pd.isna(v) else v for v in series.tolist()))


def kpi_series(rows: pd.DataFrame, config: EngineConfig) -> List[Dict[str, Any]]:
    """Chronological Actual/Target points; unknown months are left out."""
    points = []
    for month, year, actual, target in zip(
        column_as_series(rows, "Month"),
        column_as_series(rows, "Year"),
        column_as_series(rows, "Actual"),
        column_as_series(rows, "Target"),
    ):
        month_idx = config.month_index(month)
        if month_idx < 0:
            continue
        points.append(
            {
                "year": to_int(year),
                "month": month,
                "month_index": month_idx,
                "actual": to_number(actual),
                "target": to_number(target),
            }
        )
    points.sort(key=lambda p: (p["year"] is not None, p["year"] or 0, p["month_index"]))
    return points


def compute_trends(
    config: EngineConfig,
    ctx: Dict[str, Any],
    *,
    platform: Optional[str] = None,
    channel: Optional[str] = None,
) -> Dict[str, Any]:
    historical: pd.DataFrame = ctx.get("historical", pd.DataFrame())
    payload: Dict[str, Any] = {
        "platforms": [],
        "channels": [],
        "selection": {"platform": None, "channel": None},
        "series": [],
        "master_trend": None,
    }
    if historical.empty:
        return payload

    platforms = [p for p in _unique(column_as_series(historical, "Platform")) if p is not None]
    if platform not in platforms:
        platform = platforms[0] if platforms else None
    platform_rows = select(historical, platform_is(platform)) if platform is not None else historical.iloc[0:0]

    channels = _unique(column_as_series(platform_rows, "Channel"))
    if channel is None or channel not in channels:
        channel = channels[0] if channels else None

    payload["platforms"] = platforms
    payload["channels"] = [
        {"value": c, "label": config.total_channel if c in TOTAL_CHANNEL_ALIASES else c} for c in channels
    ]
    payload["selection"] = {"platform": platform, "channel": channel}

    selected = select(platform_rows, channel_is(channel))
    for kpi in [k for k in _unique(column_as_series(selected, "KPI")) if k is not None]:
        points = kpi_series(select(selected, kpi_is(kpi)), config)
        if points:
            payload["series"].append({"kpi": kpi, "points": points})

    master = ytd_rollup(historical, config.master_trend_kpi, config)
    payload["master_trend"] = {
        "kpi": master.kpi,
        "year": master.year,
        "months": master.months.to_dict(orient="records"),
    }
    return payload
