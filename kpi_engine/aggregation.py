"""Grouping and summation over normalized KPI records.

Record selection is always expressed as a named predicate (a callable taking a
frame and returning a boolean mask) so that call sites spell out which rows
make up a reported total, e.g. ``platform_total_or_chatbot`` for the
"Channel == Total OR Platform == Chatbot" union used by cross-platform KPIs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence

import pandas as pd

from kpi_engine.config import EngineConfig
from kpi_engine.data import column_as_series, month_index_series, numeric_series, year_series
from kpi_engine.pacing import target_attainment


RecordPredicate = Callable[[pd.DataFrame], pd.Series]


# ---------------- Predicates ----------------
def kpi_is(kpi: str) -> RecordPredicate:
    def _pred(df: pd.DataFrame) -> pd.Series:
        return column_as_series(df, "KPI") == kpi

    return _pred


def platform_is(platform: str) -> RecordPredicate:
    def _pred(df: pd.DataFrame) -> pd.Series:
        return column_as_series(df, "Platform") == platform

    return _pred


def channel_is(channel: Optional[str], *, case_insensitive: bool = False) -> RecordPredicate:
    def _pred(df: pd.DataFrame) -> pd.Series:
        series = column_as_series(df, "Channel")
        if channel is None:
            return series.isna()
        if case_insensitive:
            return series.astype("string").str.lower().eq(channel.lower()).fillna(False).astype(bool)
        return series == channel

    return _pred


def all_of(*predicates: RecordPredicate) -> RecordPredicate:
    def _pred(df: pd.DataFrame) -> pd.Series:
        mask = pd.Series(True, index=df.index)
        for p in predicates:
            mask &= p(df)
        return mask

    return _pred


def any_of(*predicates: RecordPredicate) -> RecordPredicate:
    def _pred(df: pd.DataFrame) -> pd.Series:
        mask = pd.Series(False, index=df.index)
        for p in predicates:
            mask |= p(df)
        return mask

    return _pred


def negate(predicate: RecordPredicate) -> RecordPredicate:
    def _pred(df: pd.DataFrame) -> pd.Series:
        return ~predicate(df)

    return _pred


def platform_total_or_chatbot(config: EngineConfig) -> RecordPredicate:
    """Rows that together make a cross-platform total without double counting.

    The portal reports a pre-aggregated ``Total`` channel row next to its
    per-channel detail; the chatbot reports a single platform-level row.
    """

    def _pred(df: pd.DataFrame) -> pd.Series:
        return (column_as_series(df, "Channel") == config.total_channel) | (
            column_as_series(df, "Platform") == config.chatbot_platform
        )

    return _pred


def select(df: pd.DataFrame, predicate: Optional[RecordPredicate] = None) -> pd.DataFrame:
    if predicate is None or df.empty:
        return df
    return df[predicate(df)]


# ---------------- Aggregation ----------------
def group_sums(
    df: pd.DataFrame,
    keys: Sequence[str],
    fields: Iterable[str],
    *,
    predicate: Optional[RecordPredicate] = None,
) -> pd.DataFrame:
    """Sum ``fields`` per distinct ``keys`` tuple, in first-seen order.

    A record with a missing or unparsable value still creates its bucket and
    contributes 0 to that field.
    """
    keys = list(keys)
    fields = list(fields)
    subset = select(df, predicate)
    if subset.empty:
        return pd.DataFrame(columns=keys + fields)

    frame = pd.DataFrame({k: column_as_series(subset, k) for k in keys}, index=subset.index)
    for f in fields:
        frame[f] = numeric_series(subset, f)
    return frame.groupby(keys, dropna=False, sort=False)[fields].sum().reset_index()


def sum_fields(
    df: pd.DataFrame,
    fields: Iterable[str],
    *,
    predicate: Optional[RecordPredicate] = None,
) -> Dict[str, float]:
    subset = select(df, predicate)
    return {f: float(numeric_series(subset, f).sum()) for f in fields}


def month_buckets(
    df: pd.DataFrame,
    kpi: str,
    config: EngineConfig,
    *,
    predicate: Optional[RecordPredicate] = None,
    year: Optional[int] = None,
) -> pd.DataFrame:
    """Monthly Actual/Target sums for one KPI, ascending by month.

    Months outside the configured month table are left out; months with no
    qualifying records are simply absent. With ``year`` set, rows without a
    parsable year are kept.
    """
    columns = ["Month", "MonthIndex", "Actual", "Target"]
    filters = [kpi_is(kpi)] + ([predicate] if predicate is not None else [])
    subset = select(df, all_of(*filters))
    if year is not None and not subset.empty:
        years = year_series(subset)
        subset = subset[(years == year) | years.isna()]
    if subset.empty:
        return pd.DataFrame(columns=columns)

    buckets = group_sums(subset, ["KPI", "Month"], ["Actual", "Target"])
    buckets["MonthIndex"] = month_index_series(buckets, config)
    buckets = buckets[buckets["MonthIndex"] > -1]
    return buckets.sort_values("MonthIndex", kind="stable")[columns].reset_index(drop=True)


# ---------------- YTD rollup ----------------
@dataclass(frozen=True)
class YtdRollup:
    kpi: str
    year: Optional[int]
    months: pd.DataFrame
    actual: float
    target: float
    ratio: float
    status: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "kpi": self.kpi,
            "year": self.year,
            "months": self.months.to_dict(orient="records"),
            "actual": self.actual,
            "target": self.target,
            "ratio": self.ratio,
            "status": self.status,
        }


def ytd_rollup(
    historical: pd.DataFrame,
    kpi: str,
    config: EngineConfig,
    *,
    predicate: Optional[RecordPredicate] = None,
    year: Optional[int] = None,
) -> YtdRollup:
    """Year-to-date monthly series and grand totals for ``kpi``.

    ``predicate`` defaults to ``platform_total_or_chatbot`` and ``year`` to
    the latest year present in ``historical``.
    """
    if predicate is None:
        predicate = platform_total_or_chatbot(config)
    if year is None and not historical.empty:
        years = year_series(historical).dropna()
        year = int(years.max()) if not years.empty else None

    months = month_buckets(historical, kpi, config, predicate=predicate, year=year)
    actual = float(months["Actual"].sum()) if not months.empty else 0.0
    target = float(months["Target"].sum()) if not months.empty else 0.0
    attainment = target_attainment(actual, target)
    return YtdRollup(
        kpi=kpi,
        year=year,
        months=months,
        actual=actual,
        target=target,
        ratio=attainment.ratio,
        status=attainment.status,
    )
