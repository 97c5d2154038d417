"""
Report Descriptors

A Report is a frozen, declarative description of one business question:
group keys, aggregates, an optional filter applied before grouping, an
optional rank-within-partition, an optional comparison against a global
aggregate, and ordering/limit. Descriptors are validated when they are
constructed, so a malformed definition fails before any data is read.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

import polars as pl

from sales_analytics.exceptions import ConfigurationError
from sales_analytics.schema import DIMENSIONS, INVOICE_ID, MEASURES

COUNTABLE_COLUMNS = (INVOICE_ID,) + DIMENSIONS + MEASURES


class AggregateFunction(str, Enum):
    """Supported per-group aggregates"""
    COUNT = "count"
    COUNT_DISTINCT = "count_distinct"
    SUM = "sum"
    AVG = "avg"
    ROUND_AVG = "round_avg"


NUMERIC_FUNCTIONS = (AggregateFunction.SUM, AggregateFunction.AVG, AggregateFunction.ROUND_AVG)


class ComparisonMode(str, Enum):
    """How a group aggregate is set against the global aggregate"""
    LABEL = "label"  # add a Good/Bad column
    ABOVE = "above"  # keep only groups strictly above


class ReportCategory(str, Enum):
    """Business area a report answers questions about"""
    GENERIC = "generic"
    PRODUCT = "product"
    SALES = "sales"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class Aggregate:
    """One computed output column"""
    function: AggregateFunction
    alias: str
    column: Optional[str] = None
    decimals: int = 2

    def validate(self, report_name: str) -> None:
        if not self.alias:
            raise ConfigurationError("aggregate alias must not be empty", report_name)

        if self.function in NUMERIC_FUNCTIONS:
            if self.column not in MEASURES:
                raise ConfigurationError(
                    f"{self.function.value} needs a measure, got '{self.column}' "
                    f"(measures: {', '.join(MEASURES)})",
                    report_name,
                )
        elif self.function == AggregateFunction.COUNT_DISTINCT:
            if self.column not in COUNTABLE_COLUMNS:
                raise ConfigurationError(f"cannot count distinct values of unknown column '{self.column}'", report_name)
        elif self.column is not None and self.column not in COUNTABLE_COLUMNS:
            raise ConfigurationError(f"cannot count unknown column '{self.column}'", report_name)

    def raw_expr(self) -> pl.Expr:
        """Aggregate before any rounding; used for ranking and comparison"""
        if self.function == AggregateFunction.COUNT:
            expr = pl.len() if self.column is None else pl.col(self.column).count()
        elif self.function == AggregateFunction.COUNT_DISTINCT:
            expr = pl.col(self.column).n_unique()
        elif self.function == AggregateFunction.SUM:
            expr = pl.col(self.column).sum()
        else:
            expr = pl.col(self.column).mean()
        return expr.alias(self.alias)

    def expr(self) -> pl.Expr:
        if self.function == AggregateFunction.ROUND_AVG:
            return pl.col(self.column).mean().round(self.decimals).alias(self.alias)
        return self.raw_expr()

    @property
    def is_rounded(self) -> bool:
        return self.function == AggregateFunction.ROUND_AVG


def count(alias: str = "count", column: Optional[str] = None) -> Aggregate:
    return Aggregate(AggregateFunction.COUNT, alias, column)


def count_distinct(column: str, alias: str) -> Aggregate:
    return Aggregate(AggregateFunction.COUNT_DISTINCT, alias, column)


def total(column: str, alias: str) -> Aggregate:
    return Aggregate(AggregateFunction.SUM, alias, column)


def mean(column: str, alias: str) -> Aggregate:
    return Aggregate(AggregateFunction.AVG, alias, column)


def rounded_mean(column: str, alias: str, decimals: int = 2) -> Aggregate:
    return Aggregate(AggregateFunction.ROUND_AVG, alias, column, decimals)


@dataclass(frozen=True)
class DimensionFilter:
    """Row filter applied before grouping"""
    column: str
    values: Tuple[str, ...]
    exclude: bool = False

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))

    def expr(self) -> pl.Expr:
        matches = pl.col(self.column).is_in(list(self.values))
        return ~matches if self.exclude else matches


@dataclass(frozen=True)
class RankWithinPartition:
    """Keep the top row of each partition, ordered by an aggregate descending"""
    partition_by: Tuple[str, ...]
    order_by: str
    rank_alias: str = "rank"
    keep_rank: bool = False

    def __post_init__(self):
        object.__setattr__(self, "partition_by", tuple(self.partition_by))


@dataclass(frozen=True)
class GlobalComparison:
    """
    Compare each group's average of a measure to the average over the whole,
    unfiltered record set. A group is above only if strictly greater.
    """
    measure: str
    mode: ComparisonMode = ComparisonMode.LABEL
    label_alias: str = "remarks"
    above_label: str = "Good"
    below_label: str = "Bad"


@dataclass(frozen=True)
class SortKey:
    column: str
    descending: bool = False


def desc(column: str) -> SortKey:
    return SortKey(column, descending=True)


def asc(column: str) -> SortKey:
    return SortKey(column)


@dataclass(frozen=True)
class Report:
    """Declarative report definition"""
    name: str
    question: str
    group_by: Tuple[str, ...] = ()
    aggregates: Tuple[Aggregate, ...] = ()
    where: Optional[DimensionFilter] = None
    rank: Optional[RankWithinPartition] = None
    compare: Optional[GlobalComparison] = None
    order_by: Tuple[SortKey, ...] = ()
    limit: Optional[int] = None
    category: ReportCategory = ReportCategory.GENERIC

    def __post_init__(self):
        object.__setattr__(self, "group_by", tuple(self.group_by))
        object.__setattr__(self, "aggregates", tuple(self.aggregates))
        object.__setattr__(self, "order_by", tuple(self.order_by))
        self._validate()

    def _fail(self, message: str) -> None:
        raise ConfigurationError(message, self.name or None)

    def _validate(self) -> None:
        if not self.name:
            self._fail("report name must not be empty")

        for key in self.group_by:
            if key not in DIMENSIONS:
                self._fail(f"unknown dimension '{key}' in group keys (dimensions: {', '.join(DIMENSIONS)})")
        if len(set(self.group_by)) != len(self.group_by):
            self._fail("group keys must not repeat")

        if not self.group_by and not self.aggregates:
            self._fail("a report needs group keys, aggregates or both")

        for agg in self.aggregates:
            agg.validate(self.name)

        if self.where is not None:
            if self.where.column not in DIMENSIONS:
                self._fail(f"unknown dimension '{self.where.column}' in filter")
            if not self.where.values:
                self._fail("filter needs at least one value")

        aliases = [a.alias for a in self.aggregates]
        if self.rank is not None:
            if not self.group_by:
                self._fail("rank within partition needs group keys")
            partition = set(self.rank.partition_by)
            if not partition or not partition < set(self.group_by):
                self._fail("rank partition must be a non-empty strict subset of the group keys")
            if self.rank.order_by not in aliases:
                self._fail(f"rank orders by unknown aggregate '{self.rank.order_by}'")
            aliases.append(self.rank.rank_alias)

        if self.compare is not None:
            if not self.group_by:
                self._fail("global comparison needs group keys")
            if self.compare.measure not in MEASURES:
                self._fail(f"global comparison needs a measure, got '{self.compare.measure}'")
            if self.compare.mode == ComparisonMode.LABEL:
                aliases.append(self.compare.label_alias)

        outputs = list(self.group_by) + aliases
        if len(set(outputs)) != len(outputs):
            self._fail(f"output columns must be unique, got {outputs}")

        for key in self.order_by:
            if key.column not in self.output_columns:
                self._fail(f"cannot order by '{key.column}', not an output column")

        if self.limit is not None and (isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1):
            self._fail(f"limit must be a positive integer, got {self.limit!r}")

    @property
    def output_columns(self) -> Tuple[str, ...]:
        columns = list(self.group_by) + [a.alias for a in self.aggregates]
        if self.compare is not None and self.compare.mode == ComparisonMode.LABEL:
            columns.append(self.compare.label_alias)
        if self.rank is not None and self.rank.keep_rank:
            columns.append(self.rank.rank_alias)
        return tuple(columns)

    @property
    def required_columns(self) -> FrozenSet[str]:
        """Input columns the report reads"""
        columns = set(self.group_by)
        columns.update(a.column for a in self.aggregates if a.column is not None)
        if self.where is not None:
            columns.add(self.where.column)
        if self.compare is not None:
            columns.add(self.compare.measure)
        return frozenset(columns)

    def aggregate(self, alias: str) -> Aggregate:
        for agg in self.aggregates:
            if agg.alias == alias:
                return agg
        raise KeyError(alias)
