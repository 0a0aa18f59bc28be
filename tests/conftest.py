"""
Test Suite Configuration
"""
from datetime import datetime

import polars as pl
import pytest

from order_analytics.ingestion import SourceSnapshot


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Customers in RS, SP, an unknown state code and DF"""
    return pl.DataFrame({
        "customer_id": ["c1", "c2", "c3", "c4"],
        "customer_unique_id": ["u1", "u2", "u3", "u4"],
        "customer_city": ["porto alegre", "sao paulo", "nowhere", "brasilia"],
        "customer_state": ["RS", "SP", "XX", "DF"],
    })


@pytest.fixture
def sample_orders_df() -> pl.DataFrame:
    """
    A1 delivered late, A2 shipped, A3 delivered without payments or reviews,
    A4 delivered exactly on the estimate with several children, A5 without a
    customer, A6 delivered without a delivery date, A7 in an unknown state.
    """
    return pl.DataFrame({
        "order_id": ["A1", "A2", "A3", "A4", "A5", "A6", "A7"],
        "customer_id": ["c1", "c2", "c2", "c4", "c9", "c3", "c3"],
        "order_status": [
            "delivered", "shipped", "delivered", "delivered",
            "delivered", "delivered", "delivered",
        ],
        "order_purchase_timestamp": [
            datetime(2024, 1, 1, 10, 0),
            datetime(2024, 1, 2, 9, 0),
            datetime(2024, 2, 1, 23, 0),
            datetime(2024, 3, 1, 8, 0),
            datetime(2024, 3, 5, 12, 0),
            datetime(2024, 3, 6, 12, 0),
            datetime(2024, 4, 1, 18, 0),
        ],
        "order_estimated_delivery_date": [
            datetime(2024, 1, 8),
            datetime(2024, 1, 9),
            datetime(2024, 2, 20),
            datetime(2024, 3, 10),
            datetime(2024, 3, 20),
            datetime(2024, 3, 21),
            datetime(2024, 4, 15),
        ],
        "order_delivered_customer_date": [
            datetime(2024, 1, 10, 15, 30),
            datetime(2024, 1, 5, 10, 0),
            datetime(2024, 2, 2, 1, 0),
            datetime(2024, 3, 10),
            datetime(2024, 3, 12),
            None,
            datetime(2024, 4, 12, 9, 0),
        ],
    })


@pytest.fixture
def sample_payments_df() -> pl.DataFrame:
    return pl.DataFrame({
        "order_id": ["A1", "A1", "A2", "A4", "A4", "A4", "A7"],
        "payment_value": [30.0, 10.0, 99.0, 50.0, 25.0, 25.0, 10.0],
        "payment_type": [
            "credit_card", "voucher", "boleto",
            "credit_card", "credit_card", "voucher", "boleto",
        ],
    })


@pytest.fixture
def sample_items_df() -> pl.DataFrame:
    return pl.DataFrame({
        "order_id": ["A1", "A3", "A4", "A4", "A4"],
        "price": [35.0, 12.5, 20.0, 30.0, 40.0],
        "freight_value": [5.0, 2.5, 2.0, 3.0, 4.0],
    })


@pytest.fixture
def sample_reviews_df() -> pl.DataFrame:
    return pl.DataFrame({
        "order_id": ["A1", "A1", "A4", "A4"],
        "review_score": [4, 5, 3, 4],
    })


@pytest.fixture
def sample_snapshot(
    sample_orders_df,
    sample_customers_df,
    sample_payments_df,
    sample_items_df,
    sample_reviews_df,
) -> SourceSnapshot:
    """Hand-built snapshot covering the delivery, fan-out and orphan cases"""
    return SourceSnapshot(
        orders=sample_orders_df,
        customers=sample_customers_df,
        payments=sample_payments_df,
        order_items=sample_items_df,
        reviews=sample_reviews_df,
    )
