from __future__ import annotations

import logging
import math
from typing import Any, Dict, Literal, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from api.schemas import EngineConfigModel
from kpi_engine.config import EngineConfig, normalize_config
from kpi_engine.data import format_value, load_dashboard_data, prepare_context
from kpi_engine.metrics_breakdown import compute_breakdown
from kpi_engine.metrics_debug import compute_debug
from kpi_engine.metrics_glance import compute_at_a_glance
from kpi_engine.metrics_trends import compute_trends
from kpi_engine.metrics_weekly import compute_weekly_pulse
from kpi_engine.metrics_ytd import compute_ytd


app = FastAPI(title="KPI Pacing Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _config_from_model(model: Optional[EngineConfigModel]) -> EngineConfig:
    return normalize_config(model.model_dump() if model is not None else None)


def _context(config: EngineConfig) -> Dict[str, Any]:
    return prepare_context(config, load_dashboard_data())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _with_display(payload: Dict[str, Any]) -> Dict[str, Any]:
    for row in payload.get("core_kpis", []):
        kpi = row["kpi"]
        row["display"] = {
            "actual": format_value(kpi, row["actual"]),
            "target": format_value(kpi, row["target"]),
            "portal_actual": format_value(kpi, row["portal"]["actual"]),
            "portal_target": format_value(kpi, row["portal"]["target"]),
            "chatbot_actual": format_value(kpi, row["chatbot"]["actual"]),
            "chatbot_target": format_value(kpi, row["chatbot"]["target"]),
        }
    for card in payload.get("analytical", []):
        kpi = card["kpi"]
        card["display"] = {
            "portal": format_value(kpi, card["portal"]),
            "chatbot": format_value(kpi, card["chatbot"]),
        }
    return payload


@app.get("/meta/period")
def meta_period():
    try:
        ctx = _context(normalize_config(None))
        return _json(
            {
                "period": ctx["period"],
                "days_passed": ctx["days_passed"],
                "total_days": ctx["total_days"],
                "loaded": ctx["loaded"],
            }
        )
    except Exception as exc:
        logger.exception("meta_period failed")
        return _error(exc)


@app.post("/glance")
def glance(config: Optional[EngineConfigModel] = None):
    try:
        cfg = _config_from_model(config)
        return _json(_with_display(compute_at_a_glance(cfg, _context(cfg))))
    except Exception as exc:
        logger.exception("glance failed")
        return _error(exc)


@app.post("/weekly")
def weekly(config: Optional[EngineConfigModel] = None):
    try:
        cfg = _config_from_model(config)
        return _json(compute_weekly_pulse(cfg, _context(cfg)))
    except Exception as exc:
        logger.exception("weekly failed")
        return _error(exc)


@app.post("/ytd")
def ytd(config: Optional[EngineConfigModel] = None, kpi: str = Query(...)):
    try:
        cfg = _config_from_model(config)
        return _json(compute_ytd(cfg, _context(cfg), kpi))
    except Exception as exc:
        logger.exception("ytd failed")
        return _error(exc)


@app.post("/breakdown")
def breakdown(
    config: Optional[EngineConfigModel] = None,
    kpi: str = Query(...),
    period: Literal["monthly", "weekly"] = Query(default="monthly"),
):
    try:
        cfg = _config_from_model(config)
        return _json(compute_breakdown(cfg, _context(cfg), kpi, period=period))
    except Exception as exc:
        logger.exception("breakdown failed")
        return _error(exc)


@app.post("/trends")
def trends(
    config: Optional[EngineConfigModel] = None,
    platform: Optional[str] = Query(default=None),
    channel: Optional[str] = Query(default=None),
):
    try:
        cfg = _config_from_model(config)
        return _json(compute_trends(cfg, _context(cfg), platform=platform, channel=channel))
    except Exception as exc:
        logger.exception("trends failed")
        return _error(exc)


@app.post("/debug")
def debug(config: Optional[EngineConfigModel] = None):
    try:
        cfg = _config_from_model(config)
        return _json(compute_debug(cfg, _context(cfg)))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.get("/export/{dataset}")
def export_dataset(dataset: str):
    if dataset not in {"historical", "weekly"}:
        return JSONResponse(status_code=404, content={"error": f"Unknown dataset: {dataset}"})
    data_ctx = load_dashboard_data()
    export_df = data_ctx.get(dataset)
    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={dataset}.csv"},
    )
