from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from kpi_engine.aggregation import channel_is, kpi_is, negate, platform_is, select, sum_fields
from kpi_engine.config import EngineConfig
from kpi_engine.pacing import elapsed_fraction


Period = Literal["monthly", "weekly"]

PERIOD_FIELDS = {
    "monthly": ("Actual", "Target"),
    "weekly": ("MTD_Actual", "Full_Month_Target"),
}


@dataclass(frozen=True)
class ChannelBreakdown:
    kpi: str
    period: str
    labels: List[str]
    actuals: List[float]
    targets: Optional[List[float]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def channel_breakdown(
    df: pd.DataFrame,
    kpi: str,
    config: EngineConfig,
    *,
    period: Period = "monthly",
    days_passed: Optional[float] = None,
    total_days: Optional[float] = None,
) -> ChannelBreakdown:
    """Per-channel actuals (and targets) for one KPI, followed by the chatbot.

    ``df`` is the already-selected period: the latest month for ``monthly`` or
    the live-progress records for ``weekly``, where targets are prorated by
    the elapsed share of the month (cumulative KPIs are not prorated).
    """
    if period not in PERIOD_FIELDS:
        raise ValueError(f"Unknown breakdown period: {period!r}")
    actual_field, target_field = PERIOD_FIELDS[period]
    multiplier = 1.0
    if period == "weekly" and not config.is_cumulative(kpi):
        multiplier = elapsed_fraction(days_passed, total_days)
    with_targets = not config.is_non_target(kpi)

    kpi_rows = select(df, kpi_is(kpi))
    channel_rows = select(kpi_rows, negate(platform_is(config.chatbot_platform)))
    groups = [select(channel_rows, channel_is(ch, case_insensitive=True)) for ch in config.channels]
    groups.append(select(kpi_rows, platform_is(config.chatbot_platform)))

    actuals: List[float] = []
    targets: List[float] = []
    for rows in groups:
        sums = sum_fields(rows, [actual_field, target_field])
        actuals.append(sums[actual_field])
        targets.append(sums[target_field] * multiplier)

    return ChannelBreakdown(
        kpi=kpi,
        period=period,
        labels=list(config.channels) + [config.chatbot_platform],
        actuals=actuals,
        targets=targets if with_targets else None,
    )
