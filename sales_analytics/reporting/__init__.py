"""
Reporting Module
"""
from .definitions import ALL_REPORTS, get_report, reports_in_category, select_reports
from .engine import ReportEngine, ReportResult, evaluate_report
from .report import (
    Aggregate,
    AggregateFunction,
    ComparisonMode,
    DimensionFilter,
    GlobalComparison,
    RankWithinPartition,
    Report,
    ReportCategory,
    SortKey,
)

__all__ = [
    "ALL_REPORTS",
    "get_report",
    "reports_in_category",
    "select_reports",
    "ReportEngine",
    "ReportResult",
    "evaluate_report",
    "Aggregate",
    "AggregateFunction",
    "ComparisonMode",
    "DimensionFilter",
    "GlobalComparison",
    "RankWithinPartition",
    "Report",
    "ReportCategory",
    "SortKey",
]
