"""
Unit Tests - Synthetic Data
"""
from datetime import date

import polars as pl

from sales_analytics.data import SalesGenerator
from sales_analytics.data.generators import BRANCHES, PRODUCT_LINES
from sales_analytics.ingestion.batch_loader import SalesLoader
from sales_analytics.reporting import ALL_REPORTS, ReportEngine
from sales_analytics.transformation.enrichers import enrich_sales_data


class TestSalesGenerator:
    """Tests for SalesGenerator"""

    def test_generated_data_loads_cleanly(self):
        raw = SalesGenerator(seed=1).generate(200)

        result = SalesLoader(policy="strict").load_frame(raw)

        assert result.rows_loaded == 200
        assert result.warnings == []

    def test_canonical_output(self):
        df = SalesGenerator(seed=2).generate(100, raw_headers=False)

        assert df.schema["date"] == pl.Date
        assert df.schema["time"] == pl.Time
        assert df["invoice_id"].n_unique() == 100
        assert set(df["product_line"].unique()) <= set(PRODUCT_LINES)
        assert df["date"].min() >= date(2019, 1, 1)
        assert df["date"].max() <= date(2019, 3, 31)
        assert df["rating"].min() >= 4.0
        assert df["rating"].max() <= 10.0

    def test_branch_city_mapping(self):
        df = SalesGenerator(seed=3).generate(100, raw_headers=False)

        for branch, city in df.select(["branch", "city"]).unique().rows():
            assert BRANCHES[branch] == city

    def test_money_columns_consistent(self):
        df = SalesGenerator(seed=4).generate(50, raw_headers=False)

        assert (df["total"] - (df["cogs"] + df["vat"])).abs().max() < 1e-6
        assert (df["vat"] - df["cogs"] * 0.05).abs().max() < 1e-3

    def test_seed_is_reproducible(self):
        first = SalesGenerator(seed=5).generate(20)
        second = SalesGenerator(seed=5).generate(20)

        assert first.equals(second)

    def test_full_pipeline(self):
        loaded = SalesLoader(policy="strict").load_frame(SalesGenerator(seed=6).generate(300))
        enriched = enrich_sales_data(loaded.data)

        results = ReportEngine(parallel=True).run_all(ALL_REPORTS, enriched)

        assert len(results) == 28
        assert results["unique_cities"].rows == 3
        assert results["product_line_count"].to_dicts() == [{"product_count": 6}]
        revenue = results["revenue_by_month"].frame["total_revenue"].sum()
        assert abs(revenue - enriched["total"].sum()) < 1e-6
