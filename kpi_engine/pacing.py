from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from kpi_engine.config import EngineConfig


GOOD_THRESHOLD = 1.0
OK_THRESHOLD = 0.9
# A channel more than 5% behind its prorated target is flagged for attention.
FOCUS_GAP_THRESHOLD = -0.05

STATUS_GOOD = "good"
STATUS_OK = "ok"
STATUS_BAD = "bad"


@dataclass(frozen=True)
class PacingResult:
    actual: float
    prorated_target: float
    ratio: float
    status: str


@dataclass(frozen=True)
class FocusChannel:
    name: Optional[str]
    gap: float


def pacing_status(ratio: float) -> str:
    if ratio >= GOOD_THRESHOLD:
        return STATUS_GOOD
    if ratio >= OK_THRESHOLD:
        return STATUS_OK
    return STATUS_BAD


def safe_ratio(num: float, den: float) -> float:
    if not math.isfinite(den) or den <= 0:
        return 0.0
    return num / den


def elapsed_fraction(days_passed: Optional[float], total_days: Optional[float]) -> float:
    if not total_days or total_days <= 0:
        return 0.0
    return (days_passed or 0.0) / total_days


def prorate(full_target: float, days_passed: Optional[float], total_days: Optional[float]) -> float:
    fraction = elapsed_fraction(days_passed, total_days)
    if fraction == 0:
        return 0.0
    return full_target * fraction


def target_attainment(actual: float, target: float) -> PacingResult:
    """Actual vs an unprorated target (monthly closing, YTD)."""
    ratio = safe_ratio(actual, target)
    return PacingResult(actual=actual, prorated_target=target, ratio=ratio, status=pacing_status(ratio))


def compute_pacing(
    kpi: str,
    actual: float,
    full_target: float,
    days_passed: Optional[float],
    total_days: Optional[float],
    config: EngineConfig,
) -> Optional[PacingResult]:
    """Pace ``actual`` against the elapsed share of ``full_target``.

    Cumulative KPIs are reported as raw actual/target only, so they get no
    pacing result (``None``).
    """
    if config.is_cumulative(kpi):
        return None
    prorated_target = prorate(full_target, days_passed, total_days)
    ratio = safe_ratio(actual, prorated_target)
    return PacingResult(actual=actual, prorated_target=prorated_target, ratio=ratio, status=pacing_status(ratio))


def find_focus_channel(channels: Iterable[Tuple[Optional[str], float, float]]) -> Optional[FocusChannel]:
    """Pick the channel furthest behind its prorated target.

    ``channels`` holds ``(name, actual, prorated_target)`` entries. The gap is
    ``actual / prorated_target - 1`` (0 without a positive target). The worst
    gap wins, ties keep input order; it is only returned when it is below
    ``FOCUS_GAP_THRESHOLD``.
    """
    gaps: List[FocusChannel] = [
        FocusChannel(name=name, gap=(actual / prorated - 1) if prorated > 0 else 0.0)
        for name, actual, prorated in channels
    ]
    if not gaps:
        return None
    worst = sorted(gaps, key=lambda g: g.gap)[0]
    if worst.gap < FOCUS_GAP_THRESHOLD:
        return worst
    return None
