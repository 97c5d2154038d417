"""
Unit Tests - Data Transformation
"""
from datetime import date, datetime, time

import pytest
import polars as pl

from sales_analytics.exceptions import ValidationError
from sales_analytics.transformation.cleaners import DataCleaner, clean_dataframe
from sales_analytics.transformation.enrichers import (
    FeatureDeriver,
    classify_time_of_day,
    month_name,
    weekday_name,
)
from sales_analytics.transformation.transformers import SalesTransformer


class TestDataCleaner:
    """Tests for DataCleaner"""

    def test_normalize_headers(self):
        """Source headers map to canonical names, unknown columns are dropped"""
        cleaner = DataCleaner()
        df = pl.DataFrame({
            "Invoice ID": ["750-67-8428"],
            "Tax 5%": [26.14],
            "Product line": ["Health and beauty"],
            "Notes": ["ignored"],
        })

        result = cleaner._normalize_headers(df)

        assert result.columns == ["invoice_id", "product_line", "vat"]

    def test_incoming_derived_columns_are_dropped(self, make_sales):
        df = make_sales([{}], enriched=False).with_columns(pl.lit("Night").alias("time_of_day"))

        result = DataCleaner().clean_sales(df)

        assert "time_of_day" not in result.columns
        assert result.height == 1

    def test_trim_strings(self):
        """Test string trimming"""
        cleaner = DataCleaner()
        df = pl.DataFrame({
            "city": ["  Yangon  ", "Mandalay", "  Naypyitaw"],
            "gender": [" Male ", "Female", "Male "],
        })

        result = cleaner._trim_strings(df)

        assert result["city"].to_list() == ["Yangon", "Mandalay", "Naypyitaw"]
        assert result["gender"].to_list() == ["Male", "Female", "Male"]

    def test_blank_to_null(self):
        cleaner = DataCleaner()
        df = pl.DataFrame({"branch": ["A", "", None]})

        result = cleaner._blank_to_null(df, ["branch"])

        assert result["branch"].to_list() == ["A", None, None]

    def test_standardize_dates(self):
        """Dates are parsed with each configured format in turn"""
        cleaner = DataCleaner()
        df = pl.DataFrame({"date": ["2019-01-05", "01/05/2019", "not a date", None]})

        result = cleaner._standardize_dates(df, ["date"])

        assert result.schema["date"] == pl.Date
        assert result["date"].to_list() == [date(2019, 1, 5), date(2019, 1, 5), None, None]

    def test_standardize_dates_from_datetime(self):
        cleaner = DataCleaner()
        df = pl.DataFrame({"date": [datetime(2019, 3, 8, 10, 29)]})

        result = cleaner._standardize_dates(df, ["date"])

        assert result["date"].to_list() == [date(2019, 3, 8)]

    def test_standardize_dates_from_timestamp_strings(self):
        """Spreadsheet exports write dates as midnight timestamps"""
        cleaner = DataCleaner()
        df = pl.DataFrame({"date": ["2019-01-05 00:00:00", "2019-01-05T08:30:00", "03/08/2019 10:29"]})

        result = cleaner._standardize_dates(df, ["date"])

        assert result["date"].to_list() == [date(2019, 1, 5), date(2019, 1, 5), date(2019, 3, 8)]

    def test_standardize_times(self):
        cleaner = DataCleaner()
        df = pl.DataFrame({"time": ["13:08:00", "10:29", "noon"]})

        result = cleaner._standardize_times(df, ["time"])

        assert result.schema["time"] == pl.Time
        assert result["time"].to_list() == [time(13, 8), time(10, 29), None]

    def test_standardize_times_fractional_and_timestamp(self):
        cleaner = DataCleaner()
        df = pl.DataFrame({"time": ["12:00:00.5", "2019-01-05 13:08:00"]})

        result = cleaner._standardize_times(df, ["time"])

        assert result["time"].to_list() == [time(12, 0, 0, 500000), time(13, 8)]

    def test_normalize_numeric(self):
        """Currency symbols and thousands separators are stripped"""
        cleaner = DataCleaner()
        df = pl.DataFrame({
            "unit_price": ["$74.69", "1,000.50", "abc"],
            "quantity": ["7", "3", "x"],
        })

        result = cleaner._normalize_numeric(df, ["unit_price", "quantity"])

        assert result["unit_price"].to_list() == [74.69, 1000.5, None]
        assert result.schema["quantity"] == pl.Int64
        assert result["quantity"].to_list() == [7, 3, None]

    def test_fractional_quantity_is_not_truncated(self):
        cleaner = DataCleaner()
        df = pl.DataFrame({"quantity": ["7.9", "7", "7.0", "0.5"]})

        result = cleaner._normalize_numeric(df, ["quantity"])

        assert result["quantity"].to_list() == [None, 7, 7, None]

    def test_clean_sales(self, raw_sales_df):
        """Test sales-specific cleaning"""
        cleaner = DataCleaner()
        result = cleaner.clean_sales(raw_sales_df)

        assert len(result) == len(raw_sales_df)
        assert result["invoice_id"].to_list()[0] == "750-67-8428"
        assert result["date"].to_list()[0] == date(2019, 1, 5)
        assert result["time"].to_list()[0] == time(13, 8)
        assert result["quantity"].to_list() == [7, 5, 7, 8]

        assert cleaner.last_stats.total_rows == 4
        assert cleaner.last_stats.renamed_columns == 16
        assert cleaner.last_stats.unparsed_dates == 0
        assert cleaner.last_stats.unparsed_times == 0

    def test_clean_never_drops_rows(self, raw_sales_df):
        df = raw_sales_df.with_columns(pl.lit("31/31/2019").alias("Date"))

        result = clean_dataframe(df)

        assert len(result) == len(df)
        assert result["date"].null_count() == len(df)

    def test_unparsed_rows_are_recorded(self, raw_sales_df):
        """Values that were present but unreadable are told apart from blanks"""
        df = raw_sales_df.with_columns(
            pl.Series("Date", ["01/05/2019", "31/31/2019", None, "03/08/2019"]),
            pl.Series("Time", ["13:08", "10:29", "noon", ""]),
            pl.Series("Quantity", ["7", "5.5", "7", None]),
        )
        cleaner = DataCleaner()

        cleaner.clean_sales(df)

        assert cleaner.last_stats.unparsed_rows == {"date": [1], "time": [2], "quantity": [1]}
        assert cleaner.last_stats.unparsed_dates == 1
        assert cleaner.last_stats.unparsed_times == 1


class TestTimeOfDay:
    """Tests for time-of-day bucketing"""

    @pytest.mark.parametrize("value,expected", [
        (time(0, 0, 0), "Morning"),
        (time(10, 0, 0), "Morning"),
        (time(12, 0, 0), "Morning"),
        (time(12, 0, 0, 500000), "Afternoon"),
        (time(12, 0, 1), "Afternoon"),
        (time(16, 30, 0), "Afternoon"),
        (time(16, 30, 1), "Evening"),
        (time(23, 59, 59), "Evening"),
    ])
    def test_boundaries(self, value, expected, make_sales):
        assert classify_time_of_day(value) == expected

        df = FeatureDeriver().derive(make_sales([{"time": value}], enriched=False))
        assert df["time_of_day"].to_list() == [expected]


class TestFeatureDeriver:
    """Tests for FeatureDeriver"""

    def test_day_and_month_names(self, make_sales):
        df = make_sales([
            {"date": date(2019, 1, 5)},
            {"date": date(2019, 1, 7)},
            {"date": date(2019, 3, 10)},
        ], enriched=False)

        result = FeatureDeriver().derive(df)

        assert result["day_name"].to_list() == ["Saturday", "Monday", "Sunday"]
        assert result["month"].to_list() == ["January", "January", "March"]

    def test_scalar_helpers(self):
        assert weekday_name(date(2019, 2, 14)) == "Thursday"
        assert month_name(date(2019, 2, 14)) == "February"

    def test_derived_values_are_recomputed(self, make_sales):
        """Stale derived columns are overwritten"""
        df = make_sales([{"time": time(18, 0)}], enriched=False).with_columns([
            pl.lit("Morning").alias("time_of_day"),
            pl.lit("Friday").alias("day_name"),
            pl.lit("December").alias("month"),
        ])

        result = FeatureDeriver().derive(df)

        assert result.row(0, named=True)["time_of_day"] == "Evening"
        assert result.row(0, named=True)["day_name"] == "Monday"
        assert result.row(0, named=True)["month"] == "January"

    def test_rows_and_inputs_unchanged(self, make_sales):
        df = make_sales([{}, {"quantity": 3}], enriched=False)

        result = FeatureDeriver().derive(df)

        assert len(result) == 2
        assert result.select(df.columns).equals(df)


class TestSalesTransformer:
    """Tests for SalesTransformer"""

    def test_enrich(self, make_sales):
        df = make_sales([{}, {}, {}], enriched=False)

        result = SalesTransformer(write_curated=False).enrich(df)

        assert result.input_rows == 3
        assert result.output_rows == 3
        assert result.derived_columns == ["time_of_day", "day_name", "month"]
        assert result.output_path is None
        assert {"time_of_day", "day_name", "month"} <= set(result.frame.columns)

    def test_enrich_missing_columns(self):
        df = pl.DataFrame({"invoice_id": ["750-67-8428"]})

        with pytest.raises(ValidationError, match="missing columns"):
            SalesTransformer(write_curated=False).enrich(df)

    def test_write_curated(self, make_sales, tmp_path):
        df = make_sales([{}], enriched=False)

        result = SalesTransformer(output_path=tmp_path, write_curated=True).enrich(df)

        assert result.output_path is not None
        written = pl.read_parquet(result.output_path)
        assert written["time_of_day"].to_list() == ["Morning"]
