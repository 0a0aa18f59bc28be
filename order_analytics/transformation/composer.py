"""
Order Composition

Builds the order + customer base relation and left-joins each per-order
summary onto it. Every summary is unique per order, so the composed
relation has exactly as many rows as the base relation.
"""

from typing import Dict, List

import polars as pl
import structlog

from order_analytics.exceptions import DuplicateSummaryError
from order_analytics.schemas import CUSTOMER_COLUMNS, ORDER_COLUMNS
from order_analytics.transformation.aggregators import ORDER_KEY

logger = structlog.get_logger(__name__)


def find_orphan_orders(orders: pl.DataFrame, customers: pl.DataFrame) -> List[str]:
    """Order ids whose customer_id has no row in customers"""
    orphans = orders.join(
        customers.select("customer_id").unique(),
        on="customer_id",
        how="anti",
    )
    return orphans[ORDER_KEY].cast(pl.Utf8).to_list()


class OrderComposer:
    """
    Joins orders, customers and the per-entity summaries.

    Example:
        summaries = aggregate_child_entities(snapshot.tables())
        composed = OrderComposer().compose(orders, customers, summaries)
    """

    def __init__(
        self,
        order_columns: List[str] = ORDER_COLUMNS,
        customer_columns: List[str] = CUSTOMER_COLUMNS,
    ):
        self.order_columns = order_columns
        self.customer_columns = customer_columns

    def build_base_relation(
        self,
        orders: pl.LazyFrame,
        customers: pl.LazyFrame,
    ) -> pl.LazyFrame:
        """
        Inner join of orders with their customer.

        Orders whose customer is missing drop out here. Customers are reduced
        to one row per customer_id first, so a duplicated customer row cannot
        multiply its orders.
        """
        customers = customers.select(self.customer_columns).unique(
            subset=["customer_id"], keep="first", maintain_order=True
        )
        return orders.select(self.order_columns).join(
            customers,
            on="customer_id",
            how="inner",
        )

    def compose(
        self,
        orders: pl.LazyFrame,
        customers: pl.LazyFrame,
        summaries: Dict[str, pl.DataFrame],
    ) -> pl.LazyFrame:
        """
        Left-join every summary onto the base relation by order id.

        Orders without a summary row get nulls in that summary's columns.

        Args:
            orders: Orders relation
            customers: Customers relation
            summaries: Per-order summaries from aggregate_child_entities

        Returns:
            Lazy composed relation, one row per base row
        """
        composed = self.build_base_relation(orders, customers)
        for name, summary in summaries.items():
            if summary[ORDER_KEY].n_unique() != summary.height:
                raise DuplicateSummaryError(name, ORDER_KEY)
            composed = composed.join(summary.lazy(), on=ORDER_KEY, how="left")
        return composed
