"""
Data Ingestion Module
"""
from .batch_loader import (
    BatchFileConfig,
    FileFormat,
    LoadResult,
    RejectionPolicy,
    SalesLoader,
    create_sales_loader,
)

__all__ = [
    "BatchFileConfig",
    "FileFormat",
    "LoadResult",
    "RejectionPolicy",
    "SalesLoader",
    "create_sales_loader",
]
