from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from kpi_engine.aggregation import ytd_rollup
from kpi_engine.config import EngineConfig


def compute_ytd(config: EngineConfig, ctx: Dict[str, Any], kpi: str) -> Dict[str, Any]:
    historical: pd.DataFrame = ctx.get("historical", pd.DataFrame())
    payload = ytd_rollup(historical, kpi, config).to_dict()
    payload["tracked"] = kpi in config.ytd_kpis
    return payload
