from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


DEFAULT_MONTH_ORDER = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DEFAULT_CUMULATIVE_KPIS = ["Registered Customers"]
DEFAULT_NON_TARGET_KPIS = [
    "Digital Order Share %",
    "Digital Volume Share %",
    "Fulfillment Rate %",
    "Order Frequency",
    "UC per Order",
]
DEFAULT_CORE_KPIS = ["Registered Customers", "Active Customers", "Delivered Orders", "Volume UC"]
DEFAULT_YTD_KPIS = ["Volume UC", "Delivered Orders"]
DEFAULT_CHANNELS = ["LKA", "DSD", "WHS", "Horeca"]


@dataclass(frozen=True)
class EngineConfig:
    month_order: List[str] = field(default_factory=lambda: list(DEFAULT_MONTH_ORDER))
    cumulative_kpis: List[str] = field(default_factory=lambda: list(DEFAULT_CUMULATIVE_KPIS))
    non_target_kpis: List[str] = field(default_factory=lambda: list(DEFAULT_NON_TARGET_KPIS))
    core_kpis: List[str] = field(default_factory=lambda: list(DEFAULT_CORE_KPIS))
    ytd_kpis: List[str] = field(default_factory=lambda: list(DEFAULT_YTD_KPIS))
    channels: List[str] = field(default_factory=lambda: list(DEFAULT_CHANNELS))
    portal_platform: str = "Customer Portal"
    chatbot_platform: str = "Chatbot"
    total_channel: str = "Total"
    master_trend_kpi: str = "Volume UC"

    def month_index(self, month: object) -> int:
        """Position of ``month`` in the month table, -1 when unrecognized."""
        try:
            return self.month_order.index(month)  # type: ignore[arg-type]
        except ValueError:
            return -1

    def is_cumulative(self, kpi: str) -> bool:
        return kpi in self.cumulative_kpis

    def is_non_target(self, kpi: str) -> bool:
        return kpi in self.non_target_kpis


def _as_str_list(values: Optional[Iterable[object]], default: List[str]) -> List[str]:
    if not values:
        return list(default)
    out = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return out or list(default)


def _as_str(value: object, default: str) -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def normalize_config(raw: Optional[dict]) -> EngineConfig:
    raw = raw or {}
    defaults = EngineConfig()

    month_order = _as_str_list(raw.get("month_order"), defaults.month_order)
    if len(month_order) != 12:
        month_order = list(defaults.month_order)

    return EngineConfig(
        month_order=month_order,
        cumulative_kpis=_as_str_list(raw.get("cumulative_kpis"), defaults.cumulative_kpis),
        non_target_kpis=_as_str_list(raw.get("non_target_kpis"), defaults.non_target_kpis),
        core_kpis=_as_str_list(raw.get("core_kpis"), defaults.core_kpis),
        ytd_kpis=_as_str_list(raw.get("ytd_kpis"), defaults.ytd_kpis),
        channels=_as_str_list(raw.get("channels"), defaults.channels),
        portal_platform=_as_str(raw.get("portal_platform"), defaults.portal_platform),
        chatbot_platform=_as_str(raw.get("chatbot_platform"), defaults.chatbot_platform),
        total_channel=_as_str(raw.get("total_channel"), defaults.total_channel),
        master_trend_kpi=_as_str(raw.get("master_trend_kpi"), defaults.master_trend_kpi),
    )
