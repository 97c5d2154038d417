"""
Supermarket Sales Analytics
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Raw sales data ingestion configuration"""

    model_config = SettingsConfigDict(env_prefix="INGEST_")

    raw_path: str = Field(default="./data/raw", description="Raw sales files directory")
    dead_letter_path: str = Field(default="./data/raw/dead_letter", description="Rejected records directory")
    delimiter: str = Field(default=",", description="CSV delimiter")
    encoding: str = Field(default="utf8", description="CSV encoding")
    null_values: List[str] = Field(
        default=["", "NULL", "null", "None", "NA", "N/A"],
        description="Markers read as null",
    )
    date_formats: List[str] = Field(
        default=["%Y-%m-%d", "%m/%d/%Y", "%d-%m-%Y", "%Y/%m/%d"],
        description="Accepted date formats, tried in order",
    )
    time_formats: List[str] = Field(
        default=["%H:%M:%S", "%H:%M:%S%.f", "%H:%M"],
        description="Accepted time formats, tried in order",
    )
    datetime_formats: List[str] = Field(
        default=[
            "%Y-%m-%d %H:%M:%S",
            "%Y-%m-%d %H:%M:%S%.f",
            "%Y-%m-%dT%H:%M:%S",
            "%m/%d/%Y %H:%M:%S",
            "%m/%d/%Y %H:%M",
        ],
        description="Timestamp formats accepted for date and time values",
    )
    rejection_policy: str = Field(
        default="strict",
        description="strict: fail the load on any bad record; reject: drop and report bad records",
    )
    write_dead_letter: bool = Field(default=False, description="Persist rejected records as parquet")

    @field_validator("rejection_policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        """Validate rejection policy value"""
        allowed = ["strict", "reject"]
        if v.lower() not in allowed:
            raise ValueError(f"Rejection policy must be one of: {allowed}")
        return v.lower()


class ReportingSettings(BaseSettings):
    """Report evaluation configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    parallel: bool = Field(default=True, description="Evaluate reports on a thread pool")
    max_workers: int = Field(default=4, ge=1, description="Max report worker threads")
    curated_path: str = Field(default="./data/curated", description="Enriched table output directory")
    write_curated: bool = Field(default=False, description="Persist the enriched table as parquet")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
