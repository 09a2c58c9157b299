from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class EngineConfigModel(BaseModel):
    """Vocabulary overrides; empty lists / unset names keep the defaults."""

    month_order: List[str] = Field(default_factory=list)
    cumulative_kpis: List[str] = Field(default_factory=list)
    non_target_kpis: List[str] = Field(default_factory=list)
    core_kpis: List[str] = Field(default_factory=list)
    ytd_kpis: List[str] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)
    portal_platform: Optional[str] = None
    chatbot_platform: Optional[str] = None
    total_channel: Optional[str] = None
    master_trend_kpi: Optional[str] = None
