"""
Data Enrichment Module

Derives the time-of-day bucket, weekday name and month name of every sales
record from its ``time`` and ``date`` columns.

The derived columns are caches of ``date``/``time``: they are recomputed on
every call and any incoming values are overwritten.
"""

from datetime import date, time
from typing import Dict

import polars as pl
import structlog

from sales_analytics.schema import DERIVED_DIMENSIONS

logger = structlog.get_logger(__name__)

MORNING = "Morning"
AFTERNOON = "Afternoon"
EVENING = "Evening"

# Inclusive upper bounds of each bucket
MORNING_END = time(12, 0, 0)
AFTERNOON_END = time(16, 30, 0)

# ISO weekday numbering, Monday=1 .. Sunday=7
WEEKDAY_NAMES: Dict[int, str] = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

MONTH_NAMES: Dict[int, str] = {
    1: "January",
    2: "February",
    3: "March",
    4: "April",
    5: "May",
    6: "June",
    7: "July",
    8: "August",
    9: "September",
    10: "October",
    11: "November",
    12: "December",
}

WEEKEND_DAYS = ("Saturday", "Sunday")


def classify_time_of_day(value: time) -> str:
    """Bucket a time of day into Morning, Afternoon or Evening."""
    if value <= MORNING_END:
        return MORNING
    if value <= AFTERNOON_END:
        return AFTERNOON
    return EVENING


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.isoweekday()]


def month_name(value: date) -> str:
    return MONTH_NAMES[value.month]


def time_of_day_expr(time_col: str = "time") -> pl.Expr:
    """Vectorized counterpart of classify_time_of_day"""
    return (
        pl.when(pl.col(time_col) <= pl.lit(MORNING_END))
        .then(pl.lit(MORNING))
        .when(pl.col(time_col) <= pl.lit(AFTERNOON_END))
        .then(pl.lit(AFTERNOON))
        .otherwise(pl.lit(EVENING))
    )


class FeatureDeriver:
    """
    Attaches the derived calendar attributes used by the sales reports.

    Example:
        deriver = FeatureDeriver()
        enriched = deriver.derive(sales_df)
    """

    def __init__(self, date_col: str = "date", time_col: str = "time"):
        self.date_col = date_col
        self.time_col = time_col

    def derive(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Add time_of_day, day_name and month columns.

        Args:
            df: Sales DataFrame with Date and Time columns

        Returns:
            DataFrame with the three derived columns replaced or appended
        """
        df = df.with_columns([
            time_of_day_expr(self.time_col).alias("time_of_day"),
            pl.col(self.date_col)
            .dt.weekday()
            .replace_strict(WEEKDAY_NAMES, return_dtype=pl.Utf8)
            .alias("day_name"),
            pl.col(self.date_col)
            .dt.month()
            .replace_strict(MONTH_NAMES, return_dtype=pl.Utf8)
            .alias("month"),
        ])

        logger.debug("Derived calendar features", rows=len(df), columns=list(DERIVED_DIMENSIONS))
        return df


def enrich_sales_data(sales_df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function to enrich sales data.

    Args:
        sales_df: Validated sales DataFrame

    Returns:
        Enriched sales DataFrame
    """
    return FeatureDeriver().derive(sales_df)
