"""
Aggregation / Reporting Engine

Evaluates Report descriptors against the enriched sales table.

The building blocks (filter, group/aggregate, global comparison,
rank-within-partition, ordering, top-N) are plain functions over polars
DataFrames; ``ReportEngine`` chains them per descriptor. Reports are
read-only and independent, so ``run_all`` may evaluate them concurrently.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from time import perf_counter
from typing import Dict, Iterable, List, Optional, Sequence

import polars as pl
import structlog

from sales_analytics.config import get_settings
from sales_analytics.exceptions import ConfigurationError, ValidationError
from .report import (
    Aggregate,
    ComparisonMode,
    DimensionFilter,
    GlobalComparison,
    RankWithinPartition,
    Report,
    ReportCategory,
    SortKey,
)

logger = structlog.get_logger(__name__)

_ORDER_KEY = "__order_key"
_COMPARE_KEY = "__compare_key"


@dataclass
class ReportResult:
    """Output of one report evaluation"""
    name: str
    question: str
    category: ReportCategory
    frame: pl.DataFrame
    duration_seconds: float

    @property
    def rows(self) -> int:
        return self.frame.height

    def to_dicts(self) -> List[dict]:
        return self.frame.to_dicts()


def apply_filter(df: pl.DataFrame, where: Optional[DimensionFilter]) -> pl.DataFrame:
    if where is None:
        return df
    return df.filter(where.expr())


def group_aggregate(
    df: pl.DataFrame,
    group_by: Sequence[str],
    aggregates: Sequence[Aggregate],
    extra: Sequence[pl.Expr] = (),
) -> pl.DataFrame:
    """
    Aggregate per group; groups appear in order of first occurrence.

    Without group keys the whole frame is one group, except that an empty
    frame yields no row at all.
    """
    exprs = [a.expr() for a in aggregates] + list(extra)

    if not group_by:
        out = df.select(exprs)
        return out.clear() if df.is_empty() else out

    if not exprs:
        return df.select(list(group_by)).unique(maintain_order=True)

    return df.group_by(list(group_by), maintain_order=True).agg(exprs)


def flag_against_global(
    grouped: pl.DataFrame,
    source: pl.DataFrame,
    comparison: GlobalComparison,
    group_value: str = _COMPARE_KEY,
) -> pl.DataFrame:
    """
    Set each group's value against the global average of the measure.

    The global average is computed once over ``source``, which is the full
    record set before any report filter.
    """
    baseline = source[comparison.measure].mean()
    above = pl.col(group_value) > pl.lit(baseline, dtype=pl.Float64)

    if comparison.mode == ComparisonMode.ABOVE:
        return grouped.filter(above)

    return grouped.with_columns(
        pl.when(above)
        .then(pl.lit(comparison.above_label))
        .otherwise(pl.lit(comparison.below_label))
        .alias(comparison.label_alias)
    )


def rank_within_partition(
    grouped: pl.DataFrame,
    rank: RankWithinPartition,
    order_key: str,
) -> pl.DataFrame:
    """
    Keep the rank-1 row of each partition.

    Rows are stable-sorted by ``order_key`` descending, so ties go to the
    group that appeared first in the input.
    """
    return (
        grouped.sort(order_key, descending=True, maintain_order=True)
        .with_columns(
            (pl.int_range(0, pl.len()).over(list(rank.partition_by)) + 1).alias(rank.rank_alias)
        )
        .filter(pl.col(rank.rank_alias) == 1)
    )


def order_rows(df: pl.DataFrame, order_by: Sequence[SortKey]) -> pl.DataFrame:
    if not order_by:
        return df
    return df.sort(
        [k.column for k in order_by],
        descending=[k.descending for k in order_by],
        maintain_order=True,
    )


def top_n(df: pl.DataFrame, limit: Optional[int]) -> pl.DataFrame:
    if limit is None:
        return df
    return df.head(limit)


def evaluate_report(report: Report, df: pl.DataFrame) -> pl.DataFrame:
    """
    Evaluate a single report against the enriched sales frame.

    Raises:
        ValidationError: the frame lacks a column the report reads
    """
    missing = sorted(report.required_columns - set(df.columns))
    if missing:
        raise ValidationError(
            f"Report '{report.name}' cannot run, sales frame is missing columns {missing}"
        )

    extra: List[pl.Expr] = []
    order_key = None
    if report.rank is not None:
        ranked_by = report.aggregate(report.rank.order_by)
        if ranked_by.is_rounded:
            extra.append(ranked_by.raw_expr().alias(_ORDER_KEY))
            order_key = _ORDER_KEY
        else:
            order_key = ranked_by.alias
    if report.compare is not None:
        extra.append(pl.col(report.compare.measure).mean().alias(_COMPARE_KEY))

    filtered = apply_filter(df, report.where)
    out = group_aggregate(filtered, report.group_by, report.aggregates, extra)

    if report.compare is not None:
        out = flag_against_global(out, df, report.compare)
    if report.rank is not None:
        out = rank_within_partition(out, report.rank, order_key)

    out = order_rows(out, report.order_by)
    out = top_n(out, report.limit)

    return out.select(list(report.output_columns))


class ReportEngine:
    """
    Runs report descriptors against an enriched sales frame.

    Example:
        engine = ReportEngine()
        results = engine.run_all(SALES_REPORTS, enriched_df)
        results["top_revenue_city"].frame
    """

    def __init__(self, max_workers: Optional[int] = None, parallel: Optional[bool] = None):
        reporting = get_settings().reporting
        self.max_workers = max_workers or reporting.max_workers
        self.parallel = reporting.parallel if parallel is None else parallel

    def run(self, report: Report, df: pl.DataFrame) -> ReportResult:
        """Evaluate one report"""
        started = perf_counter()
        frame = evaluate_report(report, df)
        duration = perf_counter() - started

        logger.debug(
            "Report evaluated",
            report=report.name,
            rows=frame.height,
            duration_seconds=round(duration, 6),
        )

        return ReportResult(
            name=report.name,
            question=report.question,
            category=report.category,
            frame=frame,
            duration_seconds=duration,
        )

    def run_all(self, reports: Iterable[Report], df: pl.DataFrame) -> Dict[str, ReportResult]:
        """
        Evaluate every report against the same frame.

        Results are keyed by report name in the order the reports were given.
        """
        reports = list(reports)
        names = [r.name for r in reports]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Report names must be unique, got {names}")

        logger.info(
            "Running reports",
            reports=len(reports),
            rows=df.height,
            parallel=self.parallel,
        )

        started = perf_counter()
        if self.parallel and len(reports) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda r: self.run(r, df), reports))
        else:
            results = [self.run(r, df) for r in reports]

        logger.info(
            "Reports complete",
            reports=len(results),
            duration_seconds=round(perf_counter() - started, 4),
        )

        return {r.name: r for r in results}
