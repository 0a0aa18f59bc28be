"""
Order Analytics Consolidation

Builds one denormalized analytics record per delivered order from the
orders, customers, payments, order items and reviews relations.
"""
from order_analytics.ingestion import SourceSnapshot, SourceTableReader
from order_analytics.transformation import (
    OrderAnalyticsTransformer,
    build_order_analytics,
    iter_records,
)

__version__ = "1.0.0"

__all__ = [
    "SourceSnapshot",
    "SourceTableReader",
    "OrderAnalyticsTransformer",
    "build_order_analytics",
    "iter_records",
]
