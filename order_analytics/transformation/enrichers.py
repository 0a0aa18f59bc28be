"""
Order Enrichment Module

Derived attributes computed on the composed order relation:
- Customer region from the state code
- Delivery lead time and promised lead time in calendar days
- Delivery delay status
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

import polars as pl
import structlog

from order_analytics.schemas import (
    DEFAULT_REGION,
    REGION_LABELS,
    REGION_RULES,
    STATUS_DELAYED,
    STATUS_ON_TIME,
)

logger = structlog.get_logger(__name__)


Timestamp = Union[datetime, date]


def _normalize_state(state: Optional[str]) -> str:
    return state.strip().upper() if isinstance(state, str) else ""


def classify_region(state: Optional[str]) -> str:
    """
    Map a Brazilian state code to its region label.

    Unknown, empty and missing codes map to "Other".
    """
    code = _normalize_state(state)
    for codes, label in REGION_RULES:
        if code in codes:
            return label
    return DEFAULT_REGION


def region_expr(state_col: str = "customer_state") -> pl.Expr:
    """Columnar form of classify_region built from REGION_RULES"""
    code = pl.col(state_col).str.strip_chars().str.to_uppercase()

    expr = None
    for codes, label in REGION_RULES:
        condition = code.is_in(sorted(codes))
        if expr is None:
            expr = pl.when(condition).then(pl.lit(label))
        else:
            expr = expr.when(condition).then(pl.lit(label))
    return expr.otherwise(pl.lit(DEFAULT_REGION))


def _as_date(value: Timestamp) -> date:
    return value.date() if isinstance(value, datetime) else value


def calendar_days_between(later: Optional[Timestamp], earlier: Optional[Timestamp]) -> Optional[int]:
    """Whole calendar days from earlier to later; time of day is dropped"""
    if later is None or earlier is None:
        return None
    return (_as_date(later) - _as_date(earlier)).days


def calendar_days_expr(later_col: str, earlier_col: str) -> pl.Expr:
    """Columnar form of calendar_days_between"""
    return (
        (pl.col(later_col).dt.date() - pl.col(earlier_col).dt.date())
        .dt.total_days()
        .cast(pl.Int64)
    )


@dataclass
class DeliveryKPIs:
    """Lead times and delay status of one order"""
    delivery_lead_time_days: Optional[int]
    promised_lead_time_days: Optional[int]
    delivery_status: str


def calculate_delivery_kpis(
    purchased_at: Optional[Timestamp],
    estimated_at: Optional[Timestamp],
    delivered_at: Optional[Timestamp],
) -> DeliveryKPIs:
    """
    Delivery KPIs for a single order.

    An order is "Delayed" only when it was delivered strictly after the
    estimated date; anything else, missing dates included, is "On Time".
    """
    delayed = (
        delivered_at is not None
        and estimated_at is not None
        and delivered_at > estimated_at
    )
    return DeliveryKPIs(
        delivery_lead_time_days=calendar_days_between(delivered_at, purchased_at),
        promised_lead_time_days=calendar_days_between(estimated_at, purchased_at),
        delivery_status=STATUS_DELAYED if delayed else STATUS_ON_TIME,
    )


class OrderEnricher:
    """
    Adds region and delivery KPI columns to the composed order relation.

    Works on LazyFrames and DataFrames alike.
    """

    def __init__(
        self,
        state_col: str = "customer_state",
        purchased_col: str = "order_purchase_timestamp",
        estimated_col: str = "order_estimated_delivery_date",
        delivered_col: str = "order_delivered_customer_date",
    ):
        self.state_col = state_col
        self.purchased_col = purchased_col
        self.estimated_col = estimated_col
        self.delivered_col = delivered_col

    def add_region(self, df: Union[pl.DataFrame, pl.LazyFrame]):
        return df.with_columns(region_expr(self.state_col).alias("customer_region"))

    def add_delivery_kpis(self, df: Union[pl.DataFrame, pl.LazyFrame]):
        """Lead time, promised lead time and delay status"""
        return df.with_columns([
            calendar_days_expr(self.delivered_col, self.purchased_col)
            .alias("delivery_lead_time_days"),

            calendar_days_expr(self.estimated_col, self.purchased_col)
            .alias("promised_lead_time_days"),

            pl.when(pl.col(self.delivered_col) > pl.col(self.estimated_col))
            .then(pl.lit(STATUS_DELAYED))
            .otherwise(pl.lit(STATUS_ON_TIME))
            .alias("delivery_status"),
        ])

    def enrich(self, df: Union[pl.DataFrame, pl.LazyFrame]):
        df = self.add_region(df)
        return self.add_delivery_kpis(df)
