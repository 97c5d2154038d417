"""
Prefect Workflow Orchestration - Sales Reports

Batch workflow that loads the raw sales export, derives calendar features
and answers every catalog report against the enriched table:
- Retries on transient file errors
- Enrichment completes before any report runs
- Reports submitted concurrently, one task each
"""

from pathlib import Path
from typing import List, Optional

import polars as pl
from prefect import flow, task, get_run_logger

from sales_analytics.config import bind_run_context, clear_run_context, configure_logging, get_settings
from sales_analytics.ingestion.batch_loader import BatchFileConfig, FileFormat, create_sales_loader
from sales_analytics.reporting import ReportEngine, get_report, select_reports
from sales_analytics.transformation.transformers import SalesTransformer


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="load_sales",
    description="Load and validate raw sales records",
    retries=3,
    retry_delay_seconds=30,
)
def load_sales(source_path: str, file_format: str = "csv") -> pl.DataFrame:
    """Load a sales file, or every file of the format in a directory"""
    logger = get_run_logger()
    loader = create_sales_loader()
    format_enum = FileFormat(file_format)

    path = Path(source_path)
    if path.is_dir():
        result = loader.load_directory(path, file_format=format_enum)
    else:
        result = loader.load_file(BatchFileConfig(file_path=path, file_format=format_enum))

    logger.info(
        f"Loaded {result.rows_loaded}/{result.rows_read} sales records "
        f"({result.rows_rejected} rejected) from {result.source}"
    )
    for warning in result.warnings:
        logger.warning(warning)

    return result.data


@task(
    name="enrich_sales",
    description="Derive time of day, weekday and month",
)
def enrich_sales(sales: pl.DataFrame) -> pl.DataFrame:
    """Attach derived calendar columns"""
    logger = get_run_logger()

    result = SalesTransformer().enrich(sales)

    logger.info(
        f"Enrichment complete: {result.output_rows} rows, "
        f"derived {', '.join(result.derived_columns)}"
    )
    if result.output_path:
        logger.info(f"Enriched table written to {result.output_path}")

    return result.frame


@task(
    name="run_report",
    description="Evaluate one catalog report",
)
def run_report(report_name: str, enriched: pl.DataFrame) -> dict:
    """Evaluate a report and return its rows"""
    logger = get_run_logger()

    result = ReportEngine(parallel=False).run(get_report(report_name), enriched)

    logger.info(f"Report {result.name}: {result.rows} rows in {result.duration_seconds:.4f}s")

    return {
        "name": result.name,
        "question": result.question,
        "category": result.category.value,
        "rows": result.to_dicts(),
    }


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="sales_reports",
    description="Load supermarket sales and answer the report catalog",
)
def sales_report_flow(
    source_path: Optional[str] = None,
    file_format: str = "csv",
    report_names: Optional[List[str]] = None,
) -> dict:
    """
    Sales reporting pipeline.

    Steps:
    1. Load and validate the raw sales records
    2. Derive calendar features
    3. Evaluate the selected reports (all by default)
    """
    logger = get_run_logger()

    source_path = source_path or get_settings().ingestion.raw_path
    reports = select_reports(report_names)

    logger.info(f"Starting sales reports for {source_path}: {len(reports)} reports")
    bind_run_context(source=source_path)

    try:
        sales = load_sales(source_path, file_format)
        enriched = enrich_sales(sales)

        futures = [run_report.submit(r.name, enriched) for r in reports]
        results = {r["name"]: r for r in (f.result() for f in futures)}
    finally:
        clear_run_context()

    logger.info(f"Sales reports complete: {len(results)} reports")

    return {
        "source": source_path,
        "rows": enriched.height,
        "reports": results,
    }


if __name__ == "__main__":
    configure_logging()
    sales_report_flow()
