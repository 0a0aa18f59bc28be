"""
Source Snapshot Reader

Reads the five source relations of one pipeline run from a snapshot
directory. Supports:
- CSV and Parquet snapshots
- Date inference for timestamp columns
- Column presence checks against the fields the pipeline reads
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq
import structlog

from order_analytics.config import get_settings
from order_analytics.exceptions import MissingColumnError, SourceTableError
from order_analytics.schemas import REQUIRED_COLUMNS

logger = structlog.get_logger(__name__)
settings = get_settings()

# Identifier and amount dtypes pinned for CSV snapshots
CSV_SCHEMA_OVERRIDES = {
    "order_id": pl.Utf8,
    "customer_id": pl.Utf8,
    "customer_unique_id": pl.Utf8,
    "customer_city": pl.Utf8,
    "customer_state": pl.Utf8,
    "order_status": pl.Utf8,
    "payment_type": pl.Utf8,
    "payment_value": pl.Float64,
    "price": pl.Float64,
    "freight_value": pl.Float64,
    "review_score": pl.Float64,
}


class FileFormat(str, Enum):
    """Supported snapshot formats"""
    CSV = "csv"
    PARQUET = "parquet"


@dataclass
class SourceSnapshot:
    """Immutable input relations of a single run"""
    orders: pl.DataFrame
    customers: pl.DataFrame
    payments: pl.DataFrame
    order_items: pl.DataFrame
    reviews: pl.DataFrame
    source_dir: Optional[str] = None
    read_at: datetime = field(default_factory=datetime.utcnow)

    def tables(self) -> Dict[str, pl.DataFrame]:
        """Relations keyed by their logical name"""
        return {
            "orders": self.orders,
            "customers": self.customers,
            "payments": self.payments,
            "order_items": self.order_items,
            "reviews": self.reviews,
        }

    def validate_columns(self) -> None:
        """Raise MissingColumnError if any relation lacks a column the pipeline reads"""
        for name, df in self.tables().items():
            missing = [c for c in REQUIRED_COLUMNS[name] if c not in df.columns]
            if missing:
                raise MissingColumnError(name, missing)

    def row_counts(self) -> Dict[str, int]:
        return {name: df.height for name, df in self.tables().items()}


class SourceTableReader:
    """
    Reads a snapshot directory into a SourceSnapshot.

    Each relation is expected at ``<directory>/<stem>.<format>`` where the
    stems come from the data lake settings.

    Example:
        reader = SourceTableReader(file_format=FileFormat.PARQUET)
        snapshot = reader.read_snapshot("data/raw/2024-01-31")
    """

    def __init__(
        self,
        file_format: Optional[Union[FileFormat, str]] = None,
        table_names: Optional[Dict[str, str]] = None,
        null_values: Optional[List[str]] = None,
    ):
        lake = settings.data_lake
        self.file_format = FileFormat(file_format or lake.default_format)
        self.table_names = table_names or {
            "orders": lake.orders_table,
            "customers": lake.customers_table,
            "payments": lake.payments_table,
            "order_items": lake.items_table,
            "reviews": lake.reviews_table,
        }
        self.null_values = null_values or ["", "NULL", "null", "None", "NA", "N/A"]

    def _path_for(self, directory: Path, name: str) -> Path:
        return directory / f"{self.table_names[name]}.{self.file_format.value}"

    def _read_csv(self, path: Path) -> pl.DataFrame:
        """Read CSV with Polars, identifiers kept as text"""
        header = pl.read_csv(path, n_rows=0).columns
        return pl.read_csv(
            path,
            null_values=self.null_values,
            try_parse_dates=True,
            schema_overrides={c: dtype for c, dtype in CSV_SCHEMA_OVERRIDES.items() if c in header},
        )

    def _read_parquet(self, path: Path) -> pl.DataFrame:
        return pl.from_arrow(pq.read_table(path))

    def _read_table(self, directory: Path, name: str) -> pl.DataFrame:
        path = self._path_for(directory, name)
        if not path.exists():
            raise SourceTableError(f"Relation '{name}' not found at {path}")

        readers = {
            FileFormat.CSV: self._read_csv,
            FileFormat.PARQUET: self._read_parquet,
        }
        try:
            df = readers[self.file_format](path)
        except (OSError, pa.ArrowException, pl.exceptions.PolarsError) as e:
            raise SourceTableError(f"Relation '{name}' could not be read from {path}: {e}") from e

        logger.info("Read source relation", relation=name, rows=df.height, file=str(path))
        return df

    def read_snapshot(self, directory: Union[str, Path, None] = None) -> SourceSnapshot:
        """
        Read all five relations from a snapshot directory.

        Args:
            directory: Snapshot directory, defaults to the raw zone path

        Returns:
            SourceSnapshot holding the five relations as read
        """
        directory = Path(directory or settings.data_lake.raw_path)
        tables = {name: self._read_table(directory, name) for name in self.table_names}

        snapshot = SourceSnapshot(source_dir=str(directory), **tables)
        snapshot.validate_columns()
        return snapshot

