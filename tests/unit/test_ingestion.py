"""
Unit Tests - Sales Loading
"""
from datetime import date, time
from pathlib import Path

import pytest
import polars as pl

from sales_analytics.exceptions import ValidationError
from sales_analytics.ingestion.batch_loader import (
    BatchFileConfig,
    FileFormat,
    LoadStatus,
    RejectionPolicy,
    SalesLoader,
)
from sales_analytics.schema import SALES_SCHEMA


class TestSalesLoader:
    """Tests for SalesLoader"""

    def test_load_records(self, raw_sales_records):
        loader = SalesLoader(policy=RejectionPolicy.STRICT)

        result = loader.load_records(raw_sales_records)

        assert result.status == LoadStatus.COMPLETED
        assert result.rows_read == 4
        assert result.rows_loaded == 4
        assert result.rows_rejected == 0
        assert dict(result.data.schema) == SALES_SCHEMA

        first = result.data.row(0, named=True)
        assert first["invoice_id"] == "750-67-8428"
        assert first["payment_method"] == "Ewallet"
        assert first["vat"] == pytest.approx(26.1415)
        assert first["date"] == date(2019, 1, 5)
        assert first["time"] == time(13, 8)

    def test_canonical_records(self, make_sales):
        records = make_sales([{}, {}], enriched=False).to_dicts()

        result = SalesLoader(policy="strict").load_records(records)

        assert result.rows_loaded == 2

    def test_duplicate_invoice_strict(self, raw_sales_records):
        """Strict policy fails the whole load and names the duplicate"""
        records = raw_sales_records + [dict(raw_sales_records[0], City="Mandalay")]
        loader = SalesLoader(policy=RejectionPolicy.STRICT)

        with pytest.raises(ValidationError) as exc_info:
            loader.load_records(records)

        error = exc_info.value
        assert len(error.records) == 1
        assert error.records[0].row_number == 4
        assert error.records[0].invoice_id == "750-67-8428"
        assert error.records[0].reasons == ["duplicate 'invoice_id'"]
        assert "750-67-8428" in str(error)

    def test_duplicate_invoice_reject(self, raw_sales_records):
        """Reject policy keeps the first occurrence"""
        records = raw_sales_records + [dict(raw_sales_records[0], City="Mandalay")]
        loader = SalesLoader(policy=RejectionPolicy.REJECT)

        result = loader.load_records(records)

        assert result.status == LoadStatus.PARTIAL
        assert result.rows_read == 5
        assert result.rows_loaded == 4
        assert result.rows_rejected == 1
        assert result.rejected[0].invoice_id == "750-67-8428"
        assert result.data.filter(pl.col("invoice_id") == "750-67-8428")["city"].to_list() == ["Yangon"]

    def test_null_field_identifies_record(self, raw_sales_records):
        raw_sales_records[2]["Gender"] = None

        with pytest.raises(ValidationError) as exc_info:
            SalesLoader(policy="strict").load_records(raw_sales_records)

        assert [r.invoice_id for r in exc_info.value.records] == ["631-41-3108"]
        assert exc_info.value.records[0].reasons == ["'gender' is missing"]

    def test_unparseable_date_rejected(self, raw_sales_records):
        raw_sales_records[1]["Date"] = "someday"

        result = SalesLoader(policy="reject").load_records(raw_sales_records)

        assert result.rows_loaded == 3
        assert result.rejected[0].invoice_id == "226-31-3081"
        assert result.rejected[0].reasons == ["'date' is unparseable"]

    def test_fractional_quantity_rejected(self, raw_sales_records):
        raw_sales_records[2]["Quantity"] = 7.9

        result = SalesLoader(policy="reject").load_records(raw_sales_records)

        assert result.rows_loaded == 3
        assert result.rejected[0].invoice_id == "631-41-3108"
        assert result.rejected[0].reasons == ["'quantity' is unparseable"]
        assert result.data["quantity"].to_list() == [7, 5, 8]

    def test_blank_value_reported_missing(self, raw_sales_records):
        raw_sales_records[0]["Time"] = "  "

        with pytest.raises(ValidationError) as exc_info:
            SalesLoader(policy="strict").load_records(raw_sales_records)

        assert exc_info.value.records[0].reasons == ["'time' is missing"]

    def test_timestamp_and_fractional_values_accepted(self, raw_sales_records):
        raw_sales_records[0]["Date"] = "2019-01-05 00:00:00"
        raw_sales_records[1]["Time"] = "12:00:00.5"

        result = SalesLoader(policy="strict").load_records(raw_sales_records)

        assert result.rows_loaded == 4
        assert result.data["date"][0] == date(2019, 1, 5)
        assert result.data["time"][1] == time(12, 0, 0, 500000)

    def test_missing_column_fails_under_any_policy(self, raw_sales_records):
        records = [{k: v for k, v in r.items() if k != "Rating"} for r in raw_sales_records]

        for policy in RejectionPolicy:
            with pytest.raises(ValidationError, match="rating"):
                SalesLoader(policy=policy).load_records(records)

    def test_empty_input(self):
        result = SalesLoader(policy="strict").load_records([])

        assert result.status == LoadStatus.COMPLETED
        assert result.rows_loaded == 0
        assert result.data.is_empty()
        assert dict(result.data.schema) == SALES_SCHEMA

    def test_warnings_reported(self, raw_sales_records):
        raw_sales_records[0]["Rating"] = 11.5

        result = SalesLoader(policy="strict").load_records(raw_sales_records)

        assert result.rows_loaded == 4
        assert len(result.warnings) == 1

    def test_load_pandas_frame(self, raw_sales_df):
        result = SalesLoader(policy="strict").load_frame(raw_sales_df.to_pandas())

        assert result.rows_loaded == 4
        assert result.source == "dataframe"

    def test_load_csv_file(self, raw_sales_df, tmp_path):
        path = tmp_path / "supermarket_sales.csv"
        raw_sales_df.write_csv(path)

        result = SalesLoader(policy="strict").load_file(BatchFileConfig(file_path=path))

        assert result.rows_loaded == 4
        assert result.file_hash is not None
        assert result.data["quantity"].to_list() == [7, 5, 7, 8]

    def test_load_parquet_file(self, make_sales, tmp_path):
        path = tmp_path / "sales.parquet"
        make_sales([{}, {}, {}], enriched=False).write_parquet(path)

        result = SalesLoader(policy="strict").load_file(
            BatchFileConfig(file_path=path, file_format=FileFormat.PARQUET)
        )

        assert result.rows_loaded == 3

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SalesLoader().load_file(BatchFileConfig(file_path=tmp_path / "nope.csv"))

    def test_load_directory_catches_cross_file_duplicates(self, raw_sales_df, tmp_path):
        raw_sales_df.head(3).write_csv(tmp_path / "january.csv")
        raw_sales_df.slice(2, 2).write_csv(tmp_path / "march.csv")

        result = SalesLoader(policy="reject").load_directory(tmp_path)

        assert result.rows_read == 5
        assert result.rows_loaded == 4
        assert [r.invoice_id for r in result.rejected] == ["631-41-3108"]

    def test_load_directory_reports_unparseable_per_file(self, raw_sales_df, tmp_path):
        raw_sales_df.head(2).write_csv(tmp_path / "january.csv")
        march = raw_sales_df.slice(2, 2).with_columns(pl.Series("Date", ["03/03/2019", "someday"]))
        march.write_csv(tmp_path / "march.csv")

        result = SalesLoader(policy="reject").load_directory(tmp_path)

        assert result.rows_loaded == 3
        assert result.rejected[0].row_number == 3
        assert result.rejected[0].invoice_id == "123-19-1176"
        assert result.rejected[0].reasons == ["'date' is unparseable"]

    def test_dead_letter(self, raw_sales_records, tmp_path):
        records = raw_sales_records + [raw_sales_records[1]]
        loader = SalesLoader(policy="reject", dead_letter_path=str(tmp_path), write_dead_letter=True)

        result = loader.load_records(records)

        assert result.dead_letter_file is not None
        dead = pl.read_parquet(result.dead_letter_file)
        assert dead["invoice_id"].to_list() == ["226-31-3081"]
        assert dead["_error_message"].to_list() == ["duplicate 'invoice_id'"]
        assert Path(result.dead_letter_file).parent == tmp_path

    def test_load_result_serializes_without_frame(self, raw_sales_records):
        result = SalesLoader(policy="strict").load_records(raw_sales_records)

        dumped = result.model_dump()

        assert "frame" not in dumped
        assert dumped["rows_loaded"] == 4
