"""
Order Analytics Consolidation
Centralized Configuration Management

Pydantic settings with environment variable support, validation and type
safety. Every section can be overridden through its environment prefix or a
local ``.env`` file.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataLakeSettings(BaseSettings):
    """Snapshot and curated zone locations"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    raw_path: str = Field(default="./data/raw", description="Source snapshot directory")
    curated_path: str = Field(default="./data/curated", description="Curated output directory")
    default_format: str = Field(default="csv", description="Snapshot file format: csv or parquet")

    # Relation file stems, named after the public Olist dataset
    orders_table: str = Field(default="olist_orders_dataset", description="Orders file stem")
    customers_table: str = Field(default="olist_customers_dataset", description="Customers file stem")
    payments_table: str = Field(default="olist_order_payments_dataset", description="Payments file stem")
    items_table: str = Field(default="olist_order_items_dataset", description="Order items file stem")
    reviews_table: str = Field(default="olist_order_reviews_dataset", description="Reviews file stem")

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Only CSV and Parquet snapshots are read"""
        allowed = ["csv", "parquet"]
        if v.lower() not in allowed:
            raise ValueError(f"Snapshot format must be one of: {allowed}")
        return v.lower()


class PipelineSettings(BaseSettings):
    """Order analytics run options"""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    require_customer_match: bool = Field(
        default=False,
        description="Raise instead of silently excluding orders without a customer",
    )
    write_output: bool = Field(default=True, description="Write the curated Parquet file")
    output_name: str = Field(default="order_analytics", description="Curated output file stem")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")
    log_file: Optional[str] = Field(default=None, description="Log file path")


class DataQualitySettings(BaseSettings):
    """Data Quality Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    enable_data_quality_checks: bool = Field(
        default=True,
        alias="ENABLE_DATA_QUALITY_CHECKS",
        description="Validate source relations and output rows",
    )
    strict_mode: bool = Field(
        default=False,
        alias="DATA_QUALITY_STRICT_MODE",
        description="Report warnings as failures",
    )


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
    app_name: str = Field(default="order-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    data_lake: DataLakeSettings = Field(default_factory=DataLakeSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    data_quality: DataQualitySettings = Field(default_factory=DataQualitySettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process; call ``get_settings.cache_clear()``
    after changing the environment.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
