"""
Sales Table Schema

Column names, roles and dtypes of the sales table, plus the header aliases
used by the public supermarket sales export.
"""

from typing import Dict, Tuple

import polars as pl

INVOICE_ID = "invoice_id"

# Categorical columns loaded from source
SOURCE_DIMENSIONS: Tuple[str, ...] = (
    "branch",
    "city",
    "customer_type",
    "gender",
    "product_line",
    "payment_method",
)

# Categorical columns computed by the feature deriver
DERIVED_DIMENSIONS: Tuple[str, ...] = ("time_of_day", "day_name", "month")

DIMENSIONS: Tuple[str, ...] = SOURCE_DIMENSIONS + DERIVED_DIMENSIONS

MEASURES: Tuple[str, ...] = (
    "unit_price",
    "quantity",
    "vat",
    "total",
    "cogs",
    "gross_margin_pct",
    "gross_income",
    "rating",
)

TEMPORAL: Tuple[str, ...] = ("date", "time")

REQUIRED_COLUMNS: Tuple[str, ...] = (INVOICE_ID,) + SOURCE_DIMENSIONS + MEASURES + TEMPORAL

SALES_SCHEMA: Dict[str, pl.DataType] = {
    INVOICE_ID: pl.Utf8,
    **{col: pl.Utf8 for col in SOURCE_DIMENSIONS},
    "unit_price": pl.Float64,
    "quantity": pl.Int64,
    "vat": pl.Float64,
    "total": pl.Float64,
    "cogs": pl.Float64,
    "gross_margin_pct": pl.Float64,
    "gross_income": pl.Float64,
    "rating": pl.Float64,
    "date": pl.Date,
    "time": pl.Time,
}

ENRICHED_SCHEMA: Dict[str, pl.DataType] = {
    **SALES_SCHEMA,
    **{col: pl.Utf8 for col in DERIVED_DIMENSIONS},
}

# Headers of the public supermarket sales CSV, lower-cased and stripped
COLUMN_ALIASES: Dict[str, str] = {
    "invoice id": INVOICE_ID,
    "invoice_id": INVOICE_ID,
    "branch": "branch",
    "city": "city",
    "customer type": "customer_type",
    "customer_type": "customer_type",
    "customer": "customer_type",
    "gender": "gender",
    "product line": "product_line",
    "product_line": "product_line",
    "unit price": "unit_price",
    "unit_price": "unit_price",
    "quantity": "quantity",
    "tax 5%": "vat",
    "tax": "vat",
    "vat": "vat",
    "total": "total",
    "date": "date",
    "time": "time",
    "payment": "payment_method",
    "payment_method": "payment_method",
    "cogs": "cogs",
    "gross margin percentage": "gross_margin_pct",
    "gross_margin_pct": "gross_margin_pct",
    "gross income": "gross_income",
    "gross_income": "gross_income",
    "rating": "rating",
}


def empty_sales_frame(enriched: bool = False) -> pl.DataFrame:
    """Typed zero-row sales frame"""
    return pl.DataFrame(schema=ENRICHED_SCHEMA if enriched else SALES_SCHEMA)
