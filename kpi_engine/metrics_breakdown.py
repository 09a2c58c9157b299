from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from kpi_engine.breakdown import Period, channel_breakdown
from kpi_engine.config import EngineConfig


def compute_breakdown(config: EngineConfig, ctx: Dict[str, Any], kpi: str, *, period: Period = "monthly") -> Dict[str, Any]:
    if period == "weekly":
        df: pd.DataFrame = ctx.get("weekly", pd.DataFrame())
    else:
        df = ctx.get("latest_month", pd.DataFrame())
    breakdown = channel_breakdown(
        df,
        kpi,
        config,
        period=period,
        days_passed=ctx.get("days_passed"),
        total_days=ctx.get("total_days"),
    )
    return breakdown.to_dict()
