"""
Data Cleaning Module

Cleaning transformations that bring raw sales exports into the canonical
sales schema.
Handles:
- Header normalization ("Invoice ID", "Tax 5%", ... to snake_case names)
- String trimming and blank-to-null conversion
- Date and time parsing across several source formats
- Numeric coercion of measures

Cleaning never drops rows: anything that cannot be parsed becomes null so
that validation can report the offending record.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import polars as pl
import structlog

from sales_analytics.config import get_settings
from sales_analytics.schema import (
    COLUMN_ALIASES,
    INVOICE_ID,
    MEASURES,
    REQUIRED_COLUMNS,
    SOURCE_DIMENSIONS,
)

logger = structlog.get_logger(__name__)

INTEGER_MEASURES = ("quantity",)


@dataclass
class CleaningStats:
    """Statistics from cleaning operations"""
    total_rows: int
    renamed_columns: int
    dropped_columns: List[str]
    # column -> positions of rows whose value was present but could not be parsed
    unparsed_rows: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def unparsed_dates(self) -> int:
        return len(self.unparsed_rows.get("date", []))

    @property
    def unparsed_times(self) -> int:
        return len(self.unparsed_rows.get("time", []))


class DataCleaner:
    """
    Cleaner for raw sales data.

    Example:
        cleaner = DataCleaner()
        df_clean = cleaner.clean_sales(raw_df)
        print(cleaner.last_stats)
    """

    def __init__(
        self,
        date_formats: Optional[Sequence[str]] = None,
        time_formats: Optional[Sequence[str]] = None,
        datetime_formats: Optional[Sequence[str]] = None,
    ):
        ingestion = get_settings().ingestion
        self.date_formats = list(date_formats or ingestion.date_formats)
        self.time_formats = list(time_formats or ingestion.time_formats)
        self.datetime_formats = list(datetime_formats or ingestion.datetime_formats)
        self.last_stats: Optional[CleaningStats] = None
        self._renamed = 0
        self._dropped: List[str] = []

    def _normalize_headers(self, df: pl.DataFrame) -> pl.DataFrame:
        """Rename known source headers to canonical names, drop the rest"""
        renames: Dict[str, str] = {}
        taken = set()
        for col in df.columns:
            canonical = COLUMN_ALIASES.get(col.strip().lower())
            if canonical is None or canonical in taken:
                continue
            taken.add(canonical)
            if canonical != col:
                renames[col] = canonical

        df = df.rename(renames)
        kept = [c for c in REQUIRED_COLUMNS if c in df.columns]
        dropped = [c for c in df.columns if c not in kept]
        if dropped:
            logger.debug("Dropping non-schema columns", columns=dropped)

        self._renamed = len(renames)
        self._dropped = dropped
        return df.select(kept)

    def _trim_strings(self, df: pl.DataFrame, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """Trim whitespace from string columns"""
        string_cols = columns or [
            col for col, dtype in zip(df.columns, df.dtypes)
            if dtype == pl.Utf8
        ]

        for col in string_cols:
            if col in df.columns:
                df = df.with_columns(
                    pl.col(col).cast(pl.Utf8).str.strip_chars().alias(col)
                )

        return df

    def _blank_to_null(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        """Treat empty strings as missing values"""
        for col in columns:
            if col in df.columns:
                df = df.with_columns(
                    pl.when(pl.col(col).str.len_chars() == 0)
                    .then(None)
                    .otherwise(pl.col(col))
                    .alias(col)
                )

        return df

    def _standardize_dates(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        """Parse date columns, trying each configured format in order"""
        for col in columns:
            if col not in df.columns:
                continue

            dtype = df.schema[col]
            if dtype == pl.Date:
                continue
            if dtype == pl.Datetime:
                expr = pl.col(col).dt.date()
            elif dtype == pl.Utf8:
                expr = pl.coalesce(
                    [pl.col(col).str.strptime(pl.Date, fmt, strict=False) for fmt in self.date_formats]
                    + [pl.col(col).str.strptime(pl.Datetime, fmt, strict=False).dt.date() for fmt in self.datetime_formats]
                )
            else:
                expr = pl.col(col).cast(pl.Date, strict=False)

            df = df.with_columns(expr.alias(col))

        return df

    def _standardize_times(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        """Parse time-of-day columns, trying each configured format in order"""
        for col in columns:
            if col not in df.columns:
                continue

            dtype = df.schema[col]
            if dtype == pl.Time:
                continue
            if dtype == pl.Datetime:
                expr = pl.col(col).dt.time()
            elif dtype == pl.Utf8:
                expr = pl.coalesce(
                    [pl.col(col).str.strptime(pl.Time, fmt, strict=False) for fmt in self.time_formats]
                    + [pl.col(col).str.strptime(pl.Datetime, fmt, strict=False).dt.time() for fmt in self.datetime_formats]
                )
            else:
                expr = pl.col(col).cast(pl.Time, strict=False)

            df = df.with_columns(expr.alias(col))

        return df

    def _normalize_numeric(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        """Coerce measures to numbers (strip currency symbols from strings)"""
        for col in columns:
            if col not in df.columns:
                continue

            expr = pl.col(col)
            if df.schema[col] == pl.Utf8:
                expr = expr.str.replace_all(r"[$€£¥,]", "").str.strip_chars()

            expr = expr.cast(pl.Float64, strict=False)
            if col in INTEGER_MEASURES:
                # fractional counts are unparseable, never truncated
                expr = pl.when(expr == expr.floor()).then(expr).otherwise(None).cast(pl.Int64, strict=False)

            df = df.with_columns(expr.alias(col))

        return df

    def _present(self, df: pl.DataFrame, columns: Sequence[str]) -> Dict[str, pl.Series]:
        """Mask of rows carrying a non-blank value, per column"""
        masks = {}
        for col in columns:
            if col not in df.columns:
                continue
            expr = pl.col(col).is_not_null()
            if df.schema[col] == pl.Utf8:
                expr = expr & (pl.col(col).str.strip_chars().str.len_chars() > 0)
            masks[col] = df.select(expr.fill_null(False).alias(col)).to_series()
        return masks

    def clean_sales(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply sales-specific cleaning transformations"""
        df = self._normalize_headers(df)

        text_cols = [c for c in (INVOICE_ID,) + SOURCE_DIMENSIONS if c in df.columns]
        df = self._trim_strings(df, text_cols)
        df = self._blank_to_null(df, text_cols)

        if "date" in df.columns and df.schema["date"] == pl.Utf8:
            df = self._trim_strings(df, ["date"])
        if "time" in df.columns and df.schema["time"] == pl.Utf8:
            df = self._trim_strings(df, ["time"])

        present = self._present(df, ("date", "time") + MEASURES)
        df = self._standardize_dates(df, ["date"])
        df = self._standardize_times(df, ["time"])
        df = self._normalize_numeric(df, list(MEASURES))

        unparsed_rows: Dict[str, List[int]] = {}
        for col, mask in present.items():
            lost = (mask & df[col].is_null()).arg_true().to_list()
            if lost:
                unparsed_rows[col] = lost

        self.last_stats = CleaningStats(
            total_rows=len(df),
            renamed_columns=self._renamed,
            dropped_columns=self._dropped,
            unparsed_rows=unparsed_rows,
        )

        if unparsed_rows:
            logger.warning(
                "Unparseable values",
                **{col: len(rows) for col, rows in unparsed_rows.items()},
            )

        return df


def clean_dataframe(df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function to clean a raw sales DataFrame.

    Args:
        df: Input DataFrame with source or canonical headers

    Returns:
        Cleaned DataFrame restricted to schema columns
    """
    return DataCleaner().clean_sales(df)
