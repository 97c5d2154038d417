"""
Synthetic Data Generator

Generates supermarket sales transactions shaped like the public three-branch
supermarket export, for testing and development.
Includes:
- Branch/city pairs with fixed mapping
- Product lines, customer types, genders and payment methods
- Dates in the first quarter of 2019, opening hours 10:00-20:59
- Consistent money columns (5% VAT on cost of goods sold)
"""

from datetime import date, timedelta
from typing import Optional

import numpy as np
import polars as pl
from faker import Faker

# =============================================================================
# CONFIGURATION
# =============================================================================

BRANCHES = {
    "A": "Yangon",
    "B": "Mandalay",
    "C": "Naypyitaw",
}

PRODUCT_LINES = [
    "Health and beauty",
    "Electronic accessories",
    "Home and lifestyle",
    "Sports and travel",
    "Food and beverages",
    "Fashion accessories",
]

CUSTOMER_TYPES = ["Member", "Normal"]
GENDERS = ["Female", "Male"]
PAYMENT_METHODS = [("Ewallet", 0.345), ("Cash", 0.344), ("Credit card", 0.311)]

VAT_RATE = 0.05
GROSS_MARGIN_PCT = round(VAT_RATE / (1 + VAT_RATE) * 100, 6)

START_DATE = date(2019, 1, 1)
DAYS = 89
OPENING_HOUR = 10
CLOSING_HOUR = 21

RAW_HEADERS = {
    "invoice_id": "Invoice ID",
    "branch": "Branch",
    "city": "City",
    "customer_type": "Customer type",
    "gender": "Gender",
    "product_line": "Product line",
    "unit_price": "Unit price",
    "quantity": "Quantity",
    "vat": "Tax 5%",
    "total": "Total",
    "date": "Date",
    "time": "Time",
    "payment_method": "Payment",
    "cogs": "cogs",
    "gross_margin_pct": "gross margin percentage",
    "gross_income": "gross income",
    "rating": "Rating",
}


# =============================================================================
# GENERATORS
# =============================================================================

class SalesGenerator:
    """Generate supermarket sales transactions"""

    def __init__(self, seed: Optional[int] = 42):
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

    def generate(self, n: int = 1000, raw_headers: bool = True) -> pl.DataFrame:
        """
        Generate n sales transactions.

        Args:
            n: Number of transactions
            raw_headers: Emit the export's headers and text dates/times
                instead of canonical columns with Date/Time dtypes
        """
        branches = self.rng.choice(list(BRANCHES), size=n)
        unit_price = np.round(self.rng.uniform(10, 100, n), 2)
        quantity = self.rng.integers(1, 11, n)
        cogs = np.round(unit_price * quantity, 2)
        vat = np.round(cogs * VAT_RATE, 4)
        day_offsets = self.rng.integers(0, DAYS + 1, n)
        seconds = self.rng.integers(OPENING_HOUR * 3600, CLOSING_HOUR * 3600, n)

        df = pl.DataFrame({
            "invoice_id": [self.fake.unique.numerify("###-##-####") for _ in range(n)],
            "branch": branches,
            "city": [BRANCHES[b] for b in branches],
            "customer_type": self.rng.choice(CUSTOMER_TYPES, n),
            "gender": self.rng.choice(GENDERS, n),
            "product_line": self.rng.choice(PRODUCT_LINES, n),
            "unit_price": unit_price,
            "quantity": quantity.astype(np.int64),
            "vat": vat,
            "total": np.round(cogs + vat, 4),
            "date": [START_DATE + timedelta(days=int(d)) for d in day_offsets],
            "time": seconds.astype(np.int64),
            "payment_method": self.rng.choice(
                [p for p, _ in PAYMENT_METHODS],
                n,
                p=[w for _, w in PAYMENT_METHODS],
            ),
            "cogs": cogs,
            "gross_margin_pct": np.full(n, GROSS_MARGIN_PCT),
            "gross_income": vat,
            "rating": np.round(self.rng.uniform(4.0, 10.0, n), 1),
        })

        # seconds since midnight -> Time (nanoseconds)
        df = df.with_columns((pl.col("time") * 1_000_000_000).cast(pl.Time))

        if not raw_headers:
            return df

        return df.with_columns([
            pl.col("date").dt.strftime("%m/%d/%Y"),
            pl.col("time").dt.strftime("%H:%M"),
        ]).rename(RAW_HEADERS)
