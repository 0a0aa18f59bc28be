"""
Per-Entity Aggregation

Reduces each one-to-many child relation (payments, order items, reviews) to
at most one summary row per order before anything is joined to the order.
Orders without child rows get no summary row at all; the composer turns
that into absent values.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import polars as pl
import structlog

from order_analytics.schemas import (
    PAYMENT_METHOD_SEPARATOR,
    PAYMENT_METHODS,
    REVIEW_SCORE,
    TOTAL_FREIGHT,
    TOTAL_PAYMENT,
    TOTAL_PRODUCTS,
)

logger = structlog.get_logger(__name__)

ORDER_KEY = "order_id"


@dataclass
class EntityAggregator:
    """
    Group-by summary of one child relation keyed by order.

    Attributes:
        name: Child relation name, as in SourceSnapshot.tables()
        aggregations: Expressions evaluated once per order group
        finalize: Optional post-processing of the grouped frame
        input_dtypes: Casts applied to the input columns before grouping
    """
    name: str
    aggregations: List[pl.Expr]
    finalize: Optional[Callable[[pl.LazyFrame], pl.LazyFrame]] = None
    key: str = ORDER_KEY
    output_columns: List[str] = field(default_factory=list)
    input_dtypes: Dict[str, pl.DataType] = field(default_factory=dict)

    def aggregate(self, df: pl.LazyFrame) -> pl.LazyFrame:
        """Build the lazy summary; one row per distinct non-null key"""
        casts = {self.key: pl.Utf8, **self.input_dtypes}
        summary = (
            df.with_columns([pl.col(col).cast(dtype) for col, dtype in casts.items()])
            .filter(pl.col(self.key).is_not_null())
            .group_by(self.key)
            .agg(self.aggregations)
        )
        if self.finalize is not None:
            summary = self.finalize(summary)
        if self.output_columns:
            summary = summary.select([self.key] + self.output_columns)
        return summary


def _render_payment_methods(summary: pl.LazyFrame) -> pl.LazyFrame:
    """Join the distinct method set into one string; an empty set stays absent"""
    return summary.with_columns(
        pl.when(pl.col("_payment_method_set").list.len() > 0)
        .then(pl.col("_payment_method_set").list.join(PAYMENT_METHOD_SEPARATOR))
        .otherwise(pl.lit(None, dtype=pl.Utf8))
        .alias(PAYMENT_METHODS)
    )


PAYMENTS_AGGREGATOR = EntityAggregator(
    name="payments",
    aggregations=[
        pl.col("payment_value").sum().alias(TOTAL_PAYMENT),
        # Sorted set so the rendered string does not depend on row order
        pl.col("payment_type").drop_nulls().unique().sort().alias("_payment_method_set"),
    ],
    finalize=_render_payment_methods,
    output_columns=[TOTAL_PAYMENT, PAYMENT_METHODS],
    input_dtypes={"payment_value": pl.Float64, "payment_type": pl.Utf8},
)

ITEMS_AGGREGATOR = EntityAggregator(
    name="order_items",
    aggregations=[
        pl.col("price").sum().alias(TOTAL_PRODUCTS),
        pl.col("freight_value").sum().alias(TOTAL_FREIGHT),
    ],
    output_columns=[TOTAL_PRODUCTS, TOTAL_FREIGHT],
    input_dtypes={"price": pl.Float64, "freight_value": pl.Float64},
)

REVIEWS_AGGREGATOR = EntityAggregator(
    name="reviews",
    aggregations=[
        pl.col("review_score").mean().alias(REVIEW_SCORE),
    ],
    output_columns=[REVIEW_SCORE],
    input_dtypes={"review_score": pl.Float64},
)

DEFAULT_AGGREGATORS = [PAYMENTS_AGGREGATOR, ITEMS_AGGREGATOR, REVIEWS_AGGREGATOR]


def aggregate_child_entities(
    tables: Dict[str, pl.DataFrame],
    aggregators: Optional[List[EntityAggregator]] = None,
) -> Dict[str, pl.DataFrame]:
    """
    Summarise every child relation.

    The summaries are independent, so they are collected together in one
    parallel batch. All of them are fully materialised before this returns.

    Args:
        tables: Relations keyed by name (see SourceSnapshot.tables)
        aggregators: Aggregators to run, defaults to payments, items, reviews

    Returns:
        Summary frames keyed by child relation name
    """
    aggregators = aggregators or DEFAULT_AGGREGATORS
    plans = [agg.aggregate(tables[agg.name].lazy()) for agg in aggregators]
    summaries = pl.collect_all(plans)

    result = {}
    for agg, summary in zip(aggregators, summaries):
        logger.info(
            "Aggregated child relation",
            relation=agg.name,
            input_rows=tables[agg.name].height,
            summary_rows=summary.height,
        )
        result[agg.name] = summary
    return result


def aggregate_payments(payments: pl.DataFrame) -> pl.DataFrame:
    """Total paid and distinct payment methods per order"""
    return PAYMENTS_AGGREGATOR.aggregate(payments.lazy()).collect()


def aggregate_items(order_items: pl.DataFrame) -> pl.DataFrame:
    """Product and freight totals per order"""
    return ITEMS_AGGREGATOR.aggregate(order_items.lazy()).collect()


def aggregate_reviews(reviews: pl.DataFrame) -> pl.DataFrame:
    """Mean review score per order"""
    return REVIEWS_AGGREGATOR.aggregate(reviews.lazy()).collect()
