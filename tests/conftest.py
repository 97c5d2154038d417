"""
Test Suite Configuration
"""
from datetime import date, time
from typing import Callable, Dict, List

import polars as pl
import pytest

from sales_analytics.config import Settings
from sales_analytics.schema import SALES_SCHEMA
from sales_analytics.transformation.enrichers import enrich_sales_data

BASE_RECORD = {
    "invoice_id": "750-67-0000",
    "branch": "A",
    "city": "Yangon",
    "customer_type": "Member",
    "gender": "Female",
    "product_line": "Health and beauty",
    "payment_method": "Ewallet",
    "unit_price": 10.0,
    "quantity": 1,
    "vat": 0.5,
    "total": 10.5,
    "cogs": 10.0,
    "gross_margin_pct": 4.761905,
    "gross_income": 0.5,
    "rating": 7.0,
    "date": date(2019, 1, 7),  # Monday
    "time": time(10, 0),
}


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        APP_ENV="testing",
        DEBUG=True,
    )


@pytest.fixture
def make_sales() -> Callable[..., pl.DataFrame]:
    """
    Factory for typed sales frames.

    Each override dict is applied to a valid base record; invoice ids are
    numbered unless given.
    """
    def factory(rows: List[Dict], enriched: bool = True) -> pl.DataFrame:
        records = []
        for i, overrides in enumerate(rows):
            record = {**BASE_RECORD, "invoice_id": f"750-67-{i:04d}"}
            record.update(overrides)
            records.append(record)

        df = pl.DataFrame(records, schema=SALES_SCHEMA)
        return enrich_sales_data(df) if enriched else df

    return factory


@pytest.fixture
def raw_sales_records() -> List[Dict]:
    """Raw records as they appear in the supermarket sales export"""
    return [
        {
            "Invoice ID": "750-67-8428",
            "Branch": "A",
            "City": "Yangon",
            "Customer type": "Member",
            "Gender": "Female",
            "Product line": "Health and beauty",
            "Unit price": 74.69,
            "Quantity": 7,
            "Tax 5%": 26.1415,
            "Total": 548.9715,
            "Date": "01/05/2019",
            "Time": "13:08",
            "Payment": "Ewallet",
            "cogs": 522.83,
            "gross margin percentage": 4.761904762,
            "gross income": 26.1415,
            "Rating": 9.1,
        },
        {
            "Invoice ID": "226-31-3081",
            "Branch": "C",
            "City": "Naypyitaw",
            "Customer type": "Normal",
            "Gender": "Female",
            "Product line": "Electronic accessories",
            "Unit price": 15.28,
            "Quantity": 5,
            "Tax 5%": 3.82,
            "Total": 80.22,
            "Date": "03/08/2019",
            "Time": "10:29",
            "Payment": "Cash",
            "cogs": 76.4,
            "gross margin percentage": 4.761904762,
            "gross income": 3.82,
            "Rating": 9.6,
        },
        {
            "Invoice ID": "631-41-3108",
            "Branch": "A",
            "City": "Yangon",
            "Customer type": "Normal",
            "Gender": "Male",
            "Product line": "Home and lifestyle",
            "Unit price": 46.33,
            "Quantity": 7,
            "Tax 5%": 16.2155,
            "Total": 340.5255,
            "Date": "03/03/2019",
            "Time": "13:23",
            "Payment": "Credit card",
            "cogs": 324.31,
            "gross margin percentage": 4.761904762,
            "gross income": 16.2155,
            "Rating": 7.4,
        },
        {
            "Invoice ID": "123-19-1176",
            "Branch": "A",
            "City": "Yangon",
            "Customer type": "Member",
            "Gender": "Male",
            "Product line": "Health and beauty",
            "Unit price": 58.22,
            "Quantity": 8,
            "Tax 5%": 23.288,
            "Total": 489.048,
            "Date": "01/27/2019",
            "Time": "20:33",
            "Payment": "Ewallet",
            "cogs": 465.76,
            "gross margin percentage": 4.761904762,
            "gross income": 23.288,
            "Rating": 8.4,
        },
    ]


@pytest.fixture
def raw_sales_df(raw_sales_records) -> pl.DataFrame:
    """Raw export as a DataFrame with every value as text, like a CSV read"""
    return pl.DataFrame(raw_sales_records).with_columns(pl.all().cast(pl.Utf8))
