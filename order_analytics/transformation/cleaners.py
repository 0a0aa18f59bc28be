"""
Data Cleaning Module

Cleaning steps around the order composition:
- Timestamp standardization of the order date columns
- Null normalization of the monetary aggregates
- Qualification filter for delivered orders
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import polars as pl
import structlog

from order_analytics.schemas import (
    KEY_COLUMNS,
    MONETARY_COLUMNS,
    ORDER_TIMESTAMP_COLUMNS,
    PAYMENT_METHODS,
    REVIEW_SCORE,
)

logger = structlog.get_logger(__name__)

DELIVERED_STATUS = "delivered"

Frame = Union[pl.DataFrame, pl.LazyFrame]


@dataclass
class CleaningStats:
    """Row counts around the qualification filter"""
    composed_rows: int
    qualified_rows: int

    @property
    def rows_dropped(self) -> int:
        return self.composed_rows - self.qualified_rows


def standardize_order_timestamps(
    df: pl.DataFrame,
    columns: Optional[List[str]] = None,
) -> pl.DataFrame:
    """
    Coerce order date columns to Datetime.

    Text columns (for instance a CSV column that inference left as text
    because it is entirely empty) are parsed; Date columns are widened.
    """
    conversions = []
    for col in columns or ORDER_TIMESTAMP_COLUMNS:
        if col not in df.columns:
            continue
        dtype = df.schema[col]
        if dtype == pl.Null or (dtype == pl.Utf8 and df[col].null_count() == df.height):
            conversions.append(pl.lit(None, dtype=pl.Datetime("us")).alias(col))
        elif dtype == pl.Utf8:
            conversions.append(pl.col(col).str.to_datetime(strict=False).alias(col))
        elif dtype == pl.Date:
            conversions.append(pl.col(col).cast(pl.Datetime("us")).alias(col))
    if conversions:
        df = df.with_columns(conversions)
    return df


def standardize_keys(df: pl.DataFrame) -> pl.DataFrame:
    """Cast the identifier columns present in df to text"""
    keys = [col for col in KEY_COLUMNS if col in df.columns]
    return df.with_columns([pl.col(col).cast(pl.Utf8) for col in keys])


class OrderCleaner:
    """
    Null normalization and qualification filter for composed orders.

    Monetary aggregates of orders without payments or items become 0.
    The review score and payment methods stay absent: no review is not a
    score of zero.

    Example:
        cleaner = OrderCleaner()
        df = cleaner.filter_qualified(cleaner.normalize_nulls(composed))
    """

    def __init__(
        self,
        monetary_columns: List[str] = MONETARY_COLUMNS,
        delivered_status: str = DELIVERED_STATUS,
    ):
        self.monetary_columns = monetary_columns
        self.delivered_status = delivered_status
        # Never filled
        self.nullable_columns = [REVIEW_SCORE, PAYMENT_METHODS]

    def _fill_nulls(self, df: Frame, fill_values: Dict[str, Any]) -> Frame:
        """Fill null values with specified defaults"""
        columns = df.collect_schema().names() if isinstance(df, pl.LazyFrame) else df.columns
        return df.with_columns([
            pl.col(col).fill_null(value).alias(col)
            for col, value in fill_values.items()
            if col in columns
        ])

    def normalize_nulls(self, df: Frame) -> Frame:
        """Absent monetary totals become 0.0"""
        df = df.with_columns([
            pl.col(col).cast(pl.Float64) for col in self.monetary_columns
        ])
        return self._fill_nulls(df, {col: 0.0 for col in self.monetary_columns})

    def qualification_predicate(self) -> pl.Expr:
        """Delivered orders that carry an actual delivery timestamp"""
        return (
            (pl.col("order_status") == self.delivered_status)
            & pl.col("order_delivered_customer_date").is_not_null()
        )

    def filter_qualified(self, df: Frame) -> Frame:
        return df.filter(self.qualification_predicate())
