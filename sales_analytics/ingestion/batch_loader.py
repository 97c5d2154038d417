"""
Batch Data Loader

Ingests raw sales records from mappings, DataFrames or files into a typed
polars DataFrame.
Supports:
- CSV, JSON, JSON Lines and Parquet files
- polars and pandas DataFrames handed over by a host
- Record-level validation with an explicit rejection policy
- Dead-letter output for rejected records
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union
import hashlib

import pandas as pd
import polars as pl
import structlog
from pydantic import BaseModel, ConfigDict, Field

from sales_analytics.config import get_settings
from sales_analytics.exceptions import RejectedRecord, ValidationError
from sales_analytics.quality.validators import DataValidator, ValidationSeverity, create_sales_validator
from sales_analytics.schema import INVOICE_ID, SALES_SCHEMA, empty_sales_frame
from sales_analytics.transformation.cleaners import DataCleaner

logger = structlog.get_logger(__name__)


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    JSON = "json"
    JSONL = "jsonl"
    PARQUET = "parquet"


class LoadStatus(str, Enum):
    """Batch load status"""
    COMPLETED = "completed"
    PARTIAL = "partial"


class RejectionPolicy(str, Enum):
    """What to do with records that fail validation"""
    STRICT = "strict"  # raise ValidationError, load nothing
    REJECT = "reject"  # drop the offending records and report them


@dataclass
class BatchFileConfig:
    """Configuration for batch file loading"""
    file_path: Union[str, Path]
    file_format: FileFormat = FileFormat.CSV
    delimiter: Optional[str] = None
    encoding: Optional[str] = None
    skip_rows: int = 0
    null_values: List[str] = field(default_factory=list)


class RejectedRecordModel(BaseModel):
    """Serializable view of a rejected record"""
    row_number: int
    invoice_id: Optional[str] = None
    reasons: List[str] = Field(default_factory=list)


class LoadResult(BaseModel):
    """Result of a load operation"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: str
    status: LoadStatus
    rows_read: int = 0
    rows_loaded: int = 0
    rows_rejected: int = 0
    rejected: List[RejectedRecordModel] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    file_hash: Optional[str] = None
    dead_letter_file: Optional[str] = None
    frame: Any = Field(default=None, exclude=True)

    @property
    def data(self) -> pl.DataFrame:
        """Loaded sales records"""
        return self.frame


def _unparsed_reasons(row: int, reasons: List[str], unparsed_rows: Dict[str, Set[int]]) -> List[str]:
    """Report a value that was present but unreadable as unparseable rather than missing"""
    rewritten = []
    for reason in reasons:
        for col, rows in unparsed_rows.items():
            if row in rows and reason == f"'{col}' is missing":
                reason = f"'{col}' is unparseable"
                break
        rewritten.append(reason)
    return rewritten


class SalesLoader:
    """
    Loader for raw sales records.

    Every input goes through the same path: clean, validate, then either
    raise (strict policy) or drop and report offending records (reject policy).

    Example:
        loader = SalesLoader(policy=RejectionPolicy.REJECT)
        result = loader.load_file(BatchFileConfig(file_path="data/raw/sales.csv"))
        sales = result.data
    """

    def __init__(
        self,
        policy: Optional[Union[RejectionPolicy, str]] = None,
        validator: Optional[DataValidator] = None,
        cleaner: Optional[DataCleaner] = None,
        dead_letter_path: Optional[str] = None,
        write_dead_letter: Optional[bool] = None,
    ):
        ingestion = get_settings().ingestion
        self.policy = RejectionPolicy(policy or ingestion.rejection_policy)
        self.validator = validator or create_sales_validator()
        self.cleaner = cleaner or DataCleaner()
        self.dead_letter_path = Path(dead_letter_path or ingestion.dead_letter_path)
        self.write_dead_letter = (
            ingestion.write_dead_letter if write_dead_letter is None else write_dead_letter
        )

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute MD5 hash of file for deduplication"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def _read_csv(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read CSV file with every column as text; the cleaner does typing"""
        ingestion = get_settings().ingestion
        return pl.read_csv(
            config.file_path,
            separator=config.delimiter or ingestion.delimiter,
            encoding=config.encoding or ingestion.encoding,
            skip_rows=config.skip_rows,
            null_values=config.null_values or ingestion.null_values,
            infer_schema=False,
        )

    def _read_json(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read JSON file"""
        return pl.read_json(config.file_path)

    def _read_jsonl(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read JSON Lines (NDJSON) file"""
        return pl.read_ndjson(config.file_path)

    def _read_parquet(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read Parquet file"""
        return pl.read_parquet(config.file_path)

    def _read_file(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read file based on format"""
        readers = {
            FileFormat.CSV: self._read_csv,
            FileFormat.JSON: self._read_json,
            FileFormat.JSONL: self._read_jsonl,
            FileFormat.PARQUET: self._read_parquet,
        }
        reader = readers.get(FileFormat(config.file_format))
        if not reader:
            raise ValueError(f"Unsupported file format: {config.file_format}")
        return reader(config)

    def _write_to_dead_letter(
        self,
        df: pl.DataFrame,
        source: str,
        rejected: List[RejectedRecord],
    ) -> str:
        """Write rejected records to the dead letter directory"""
        self.dead_letter_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        stem = Path(source).stem if source else "records"
        dead_letter_file = self.dead_letter_path / f"{stem}_{timestamp}.parquet"

        df = df.with_columns([
            pl.Series("_error_message", ["; ".join(r.reasons) for r in rejected], dtype=pl.Utf8),
            pl.lit(datetime.now(timezone.utc)).alias("_failed_at"),
        ])

        df.write_parquet(dead_letter_file)
        logger.warning(
            "Written rejected records to dead letter queue",
            file=str(dead_letter_file),
            records=len(df),
        )
        return str(dead_letter_file)

    def _ingest(
        self,
        raw: pl.DataFrame,
        source: str,
        file_hash: Optional[str] = None,
        unparsed: Optional[Dict[str, List[int]]] = None,
    ) -> LoadResult:
        """Clean, validate and apply the rejection policy"""
        started_at = datetime.now(timezone.utc)
        rows_read = len(raw)

        logger.info("Starting sales load", source=source, rows=rows_read, policy=self.policy.value)

        unparsed_rows = {col: set(rows) for col, rows in (unparsed or {}).items()}
        if rows_read == 0 and not raw.columns:
            df = empty_sales_frame()
        else:
            df = self.cleaner.clean_sales(raw)
            for col, rows in self.cleaner.last_stats.unparsed_rows.items():
                unparsed_rows.setdefault(col, set()).update(rows)

        validation = self.validator.validate(df)

        if validation.schema_errors:
            messages = [c.message for c in validation.schema_errors]
            raise ValidationError(f"Malformed sales input: {'; '.join(messages)}", source=source)

        ids = df[INVOICE_ID].to_list()
        rejected = [
            RejectedRecord(row_number=idx, invoice_id=ids[idx], reasons=_unparsed_reasons(idx, reasons, unparsed_rows))
            for idx, reasons in validation.errors_by_row().items()
        ]
        warnings = [
            c.message for c in validation.checks
            if not c.passed and c.severity == ValidationSeverity.WARNING
        ]

        if rejected and self.policy == RejectionPolicy.STRICT:
            logger.error("Sales load rejected", source=source, offending_records=len(rejected))
            raise ValidationError(
                f"{len(rejected)} of {rows_read} sales records failed validation",
                records=rejected,
                source=source,
            )

        dead_letter_file = None
        if rejected:
            bad_rows = [r.row_number for r in rejected]
            bad_mask = pl.Series(range(len(df))).is_in(bad_rows)
            if self.write_dead_letter:
                dead_letter_file = self._write_to_dead_letter(df.filter(bad_mask), source, rejected)
            df = df.filter(~bad_mask)
            logger.warning(
                "Rejected invalid sales records",
                source=source,
                rejected=len(rejected),
                invoice_ids=[r.invoice_id for r in rejected[:10]],
            )

        df = df.select([pl.col(c).cast(t) for c, t in SALES_SCHEMA.items()])
        completed_at = datetime.now(timezone.utc)

        result = LoadResult(
            source=source,
            status=LoadStatus.PARTIAL if rejected else LoadStatus.COMPLETED,
            rows_read=rows_read,
            rows_loaded=len(df),
            rows_rejected=len(rejected),
            rejected=[
                RejectedRecordModel(row_number=r.row_number, invoice_id=r.invoice_id, reasons=r.reasons)
                for r in rejected
            ],
            warnings=warnings,
            load_duration_seconds=(completed_at - started_at).total_seconds(),
            started_at=started_at,
            completed_at=completed_at,
            file_hash=file_hash,
            dead_letter_file=dead_letter_file,
            frame=df,
        )

        logger.info(
            "Sales load completed",
            source=source,
            rows_loaded=result.rows_loaded,
            rows_rejected=result.rows_rejected,
            duration_seconds=result.load_duration_seconds,
        )

        return result

    def load_records(self, records: Iterable[Mapping[str, Any]], source: str = "records") -> LoadResult:
        """
        Load sales records given as mappings.

        Args:
            records: One mapping per transaction, source or canonical keys
            source: Label used in logs and errors

        Returns:
            LoadResult holding the typed sales frame
        """
        rows = [dict(r) for r in records]
        raw = pl.DataFrame(rows, infer_schema_length=None, strict=False) if rows else pl.DataFrame()
        return self._ingest(raw, source)

    def load_frame(
        self,
        df: Union[pl.DataFrame, pd.DataFrame],
        source: str = "dataframe",
    ) -> LoadResult:
        """Load sales records from a polars or pandas DataFrame"""
        if isinstance(df, pd.DataFrame):
            df = pl.from_pandas(df)
        return self._ingest(df, source)

    def load_file(self, config: BatchFileConfig) -> LoadResult:
        """
        Load a sales file.

        Args:
            config: Batch file configuration

        Returns:
            LoadResult: Result of the load operation
        """
        file_path = Path(config.file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_hash = self._compute_file_hash(file_path)
        raw = self._read_file(config)
        logger.info(f"Read {len(raw)} rows from file", file=str(file_path))

        return self._ingest(raw, str(file_path), file_hash=file_hash)

    def load_directory(
        self,
        directory: Union[str, Path],
        file_format: FileFormat = FileFormat.CSV,
        pattern: str = "*",
        **kwargs,
    ) -> LoadResult:
        """
        Load all matching files from a directory as one record set.

        Files are concatenated before validation, so a duplicate invoice_id
        across two files is caught like one within a file.

        Args:
            directory: Directory containing files
            file_format: File format to process
            pattern: Glob pattern for file matching
            **kwargs: Additional BatchFileConfig parameters
        """
        directory = Path(directory)
        file_format = FileFormat(file_format)
        files = sorted(directory.glob(f"{pattern}.{file_format.value}"))

        logger.info(
            f"Found {len(files)} files to load",
            directory=str(directory),
            pattern=pattern,
        )

        frames = []
        unparsed: Dict[str, List[int]] = {}
        offset = 0
        for f in files:
            frame = self.cleaner.clean_sales(
                self._read_file(BatchFileConfig(file_path=f, file_format=file_format, **kwargs))
            )
            # values lost while parsing one file are null, not unparseable, once concatenated
            for col, rows in self.cleaner.last_stats.unparsed_rows.items():
                unparsed.setdefault(col, []).extend(offset + r for r in rows)
            offset += len(frame)
            frames.append(frame)
        raw = pl.concat(frames, how="diagonal_relaxed") if frames else pl.DataFrame()

        return self._ingest(raw, str(directory), unparsed=unparsed)


def create_sales_loader() -> SalesLoader:
    """Create a SalesLoader configured from settings"""
    ingestion = get_settings().ingestion
    return SalesLoader(
        policy=ingestion.rejection_policy,
        dead_letter_path=ingestion.dead_letter_path,
        write_dead_letter=ingestion.write_dead_letter,
    )
