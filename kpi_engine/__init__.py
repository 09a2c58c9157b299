"""KPI aggregation & pacing engine (UI-agnostic).

This package contains:
- vocabulary configuration (month table, KPI classes, channel taxonomy)
- CSV normalization and dataset loading (text -> pandas)
- grouping, pacing, YTD and channel-breakdown computations
- page compute functions (JSON-serializable payloads)
"""
