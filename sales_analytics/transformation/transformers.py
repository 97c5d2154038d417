"""
Sales Transformer

Runs feature derivation over a loaded sales table and, when enabled, writes
the enriched table to the curated zone.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import polars as pl
import structlog

from sales_analytics.config import get_settings
from sales_analytics.exceptions import ValidationError
from sales_analytics.schema import DERIVED_DIMENSIONS, REQUIRED_COLUMNS
from .enrichers import FeatureDeriver

logger = structlog.get_logger(__name__)


@dataclass
class TransformResult:
    """Result of the enrichment step"""
    input_rows: int
    output_rows: int
    derived_columns: List[str]
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    frame: pl.DataFrame
    output_path: Optional[str] = None


class SalesTransformer:
    """
    Enrichment step of the sales pipeline.

    Must complete before any report runs; reports only ever see the frame
    returned here.

    Example:
        transformer = SalesTransformer()
        result = transformer.enrich(load_result.data)
        enriched = result.frame
    """

    def __init__(
        self,
        output_path: Optional[Union[str, Path]] = None,
        write_curated: Optional[bool] = None,
    ):
        reporting = get_settings().reporting
        self.output_path = Path(output_path or reporting.curated_path)
        self.write_curated = reporting.write_curated if write_curated is None else write_curated
        self.deriver = FeatureDeriver()

    def _write_output(self, df: pl.DataFrame, name: str) -> str:
        """Write enriched data to curated zone"""
        self.output_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        output_file = self.output_path / f"{name}_{timestamp}.parquet"

        df.write_parquet(output_file)
        logger.info(f"Written {len(df)} rows to {output_file}")

        return str(output_file)

    def enrich(self, df: pl.DataFrame) -> TransformResult:
        """
        Derive time_of_day, day_name and month for every sales record.

        Args:
            df: Loaded sales DataFrame

        Returns:
            TransformResult carrying the enriched frame
        """
        started_at = datetime.now(timezone.utc)
        input_rows = len(df)

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValidationError(f"Cannot enrich sales data, missing columns: {missing}")

        logger.info(f"Starting sales enrichment with {input_rows} rows")

        df = self.deriver.derive(df)

        output_file = None
        if self.write_curated:
            output_file = self._write_output(df, "sales_enriched")

        completed_at = datetime.now(timezone.utc)

        return TransformResult(
            input_rows=input_rows,
            output_rows=len(df),
            derived_columns=list(DERIVED_DIMENSIONS),
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
            frame=df,
            output_path=output_file,
        )
