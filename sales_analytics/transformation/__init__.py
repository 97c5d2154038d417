"""
Data Transformation Module
"""
from .cleaners import DataCleaner, clean_dataframe
from .enrichers import FeatureDeriver, classify_time_of_day, enrich_sales_data
from .transformers import SalesTransformer, TransformResult

__all__ = [
    "DataCleaner",
    "clean_dataframe",
    "FeatureDeriver",
    "classify_time_of_day",
    "enrich_sales_data",
    "SalesTransformer",
    "TransformResult",
]
