"""
Order Analytics Transformation Module
"""
from .aggregators import EntityAggregator, aggregate_child_entities
from .cleaners import OrderCleaner, standardize_keys, standardize_order_timestamps
from .composer import OrderComposer, find_orphan_orders
from .enrichers import OrderEnricher, calculate_delivery_kpis, classify_region
from .transformers import (
    OrderAnalyticsTransformer,
    TransformResult,
    build_order_analytics,
    iter_records,
)

__all__ = [
    "EntityAggregator",
    "aggregate_child_entities",
    "OrderCleaner",
    "standardize_keys",
    "standardize_order_timestamps",
    "OrderComposer",
    "find_orphan_orders",
    "OrderEnricher",
    "calculate_delivery_kpis",
    "classify_region",
    "OrderAnalyticsTransformer",
    "TransformResult",
    "build_order_analytics",
    "iter_records",
]
