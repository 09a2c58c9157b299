from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from kpi_engine.aggregation import all_of, any_of, channel_is, kpi_is, platform_is, select, sum_fields
from kpi_engine.config import EngineConfig
from kpi_engine.data import column_as_series, to_number
from kpi_engine.pacing import target_attainment


def _reported_value(rows: pd.DataFrame, field: str) -> Optional[float]:
    """Sum of the parsable values in ``field``, None when nothing was reported."""
    values = [n for n in (to_number(v) for v in column_as_series(rows, field).tolist()) if n is not None]
    if not values:
        return None
    return float(sum(values))


def compute_at_a_glance(config: EngineConfig, ctx: Dict[str, Any]) -> Dict[str, Any]:
    latest: pd.DataFrame = ctx.get("latest_month", pd.DataFrame())
    payload: Dict[str, Any] = {"period": ctx.get("period", {}), "core_kpis": [], "analytical": []}
    if latest.empty:
        return payload

    portal_total = all_of(platform_is(config.portal_platform), channel_is(config.total_channel))
    chatbot = platform_is(config.chatbot_platform)
    combined = any_of(portal_total, chatbot)

    for kpi in config.core_kpis:
        kpi_rows = select(latest, kpi_is(kpi))
        portal_rows = select(kpi_rows, portal_total)
        chatbot_rows = select(kpi_rows, chatbot)
        totals = sum_fields(kpi_rows, ["Actual", "Target"], predicate=combined)
        attainment = None
        if totals["Target"] > 0:
            attainment = asdict(target_attainment(totals["Actual"], totals["Target"]))
        payload["core_kpis"].append(
            {
                "kpi": kpi,
                "actual": totals["Actual"],
                "target": totals["Target"],
                "attainment": attainment,
                "portal": {
                    "actual": _reported_value(portal_rows, "Actual"),
                    "target": _reported_value(portal_rows, "Target"),
                },
                "chatbot": {
                    "actual": _reported_value(chatbot_rows, "Actual"),
                    "target": _reported_value(chatbot_rows, "Target"),
                },
                "ytd_available": kpi in config.ytd_kpis,
            }
        )

    for kpi in config.non_target_kpis:
        kpi_rows = select(latest, kpi_is(kpi))
        portal_rows = select(kpi_rows, portal_total)
        chatbot_rows = select(kpi_rows, chatbot)
        if portal_rows.empty and chatbot_rows.empty:
            continue
        payload["analytical"].append(
            {
                "kpi": kpi,
                "portal": _reported_value(portal_rows, "Actual"),
                "chatbot": _reported_value(chatbot_rows, "Actual"),
            }
        )

    return payload
