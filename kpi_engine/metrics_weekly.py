from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from kpi_engine.aggregation import all_of, group_sums, kpi_is, platform_is, select, sum_fields
from kpi_engine.config import EngineConfig
from kpi_engine.data import column_as_series
from kpi_engine.pacing import compute_pacing, elapsed_fraction, find_focus_channel


def channel_gaps(
    weekly: pd.DataFrame,
    kpi: str,
    platform: str,
    days_passed: float,
    total_days: float,
    config: EngineConfig,
) -> List[Tuple[Optional[str], float, float]]:
    """``(channel, mtd_actual, prorated_target)`` per channel of one platform/KPI."""
    multiplier = 1.0 if config.is_cumulative(kpi) else elapsed_fraction(days_passed, total_days)
    buckets = group_sums(
        weekly,
        ["KPI", "Platform", "Channel"],
        ["MTD_Actual", "Full_Month_Target"],
        predicate=all_of(kpi_is(kpi), platform_is(platform)),
    )
    out: List[Tuple[Optional[str], float, float]] = []
    for channel, actual, target in zip(buckets["Channel"], buckets["MTD_Actual"], buckets["Full_Month_Target"]):
        name = None if pd.isna(channel) else str(channel)
        out.append((name, float(actual), float(target) * multiplier))
    return out


def compute_weekly_pulse(config: EngineConfig, ctx: Dict[str, Any]) -> Dict[str, Any]:
    weekly: pd.DataFrame = ctx.get("weekly", pd.DataFrame())
    days_passed = float(ctx.get("days_passed", 0.0) or 0.0)
    total_days = float(ctx.get("total_days", 0.0) or 0.0)
    payload: Dict[str, Any] = {"days_passed": days_passed, "total_days": total_days, "kpis": []}
    if weekly.empty:
        return payload

    kpis = [k for k in dict.fromkeys(column_as_series(weekly, "KPI").tolist()) if not pd.isna(k)]
    for kpi in kpis:
        platforms = []
        for platform in (config.portal_platform, config.chatbot_platform):
            rows = select(weekly, all_of(kpi_is(kpi), platform_is(platform)))
            if rows.empty:
                continue
            gaps = channel_gaps(weekly, kpi, platform, days_passed, total_days, config)
            actual = sum(a for _, a, _ in gaps)
            full_target = sum_fields(rows, ["Full_Month_Target"])["Full_Month_Target"]
            pacing = compute_pacing(kpi, actual, full_target, days_passed, total_days, config)

            focus = None
            if platform == config.portal_platform and kpi in config.core_kpis and len(rows) > 1:
                focus = find_focus_channel(gaps)

            platforms.append(
                {
                    "platform": platform,
                    "actual": actual,
                    "full_target": full_target,
                    "pacing": asdict(pacing) if pacing is not None else None,
                    "focus": asdict(focus) if focus is not None else None,
                    "drilldown": platform == config.portal_platform,
                }
            )
        payload["kpis"].append({"kpi": kpi, "cumulative": config.is_cumulative(kpi), "platforms": platforms})

    return payload
