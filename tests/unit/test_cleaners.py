"""
Unit Tests - Null Normalization, Qualification Filter and Timestamps
"""
from datetime import datetime

import polars as pl
import pytest

from order_analytics.transformation.cleaners import OrderCleaner, standardize_order_timestamps


@pytest.fixture
def composed_df() -> pl.DataFrame:
    return pl.DataFrame({
        "order_id": ["o1", "o2", "o3", "o4"],
        "order_status": ["delivered", "delivered", "shipped", None],
        "order_delivered_customer_date": [datetime(2024, 1, 2), None, datetime(2024, 1, 2), datetime(2024, 1, 2)],
        "valor_total_pagamento": [10.0, None, 5.0, None],
        "valor_total_produtos": [None, 3.0, None, None],
        "valor_total_frete": [None, 1.0, None, None],
        "metodos_pagamento": ["boleto", None, "voucher", None],
        "review_score": [None, 4.0, None, None],
    })


class TestOrderCleaner:
    """Tests for OrderCleaner"""

    def test_monetary_nulls_become_zero(self, composed_df):
        result = OrderCleaner().normalize_nulls(composed_df)

        assert result["valor_total_pagamento"].to_list() == [10.0, 0.0, 5.0, 0.0]
        assert result["valor_total_produtos"].to_list() == [0.0, 3.0, 0.0, 0.0]
        assert result["valor_total_frete"].null_count() == 0

    def test_review_score_stays_absent(self, composed_df):
        """A missing review is not a score of zero"""
        result = OrderCleaner().normalize_nulls(composed_df)

        assert result["review_score"].to_list() == [None, 4.0, None, None]
        assert result["metodos_pagamento"].null_count() == 2

    def test_integer_totals_are_widened(self):
        df = pl.DataFrame({
            "valor_total_pagamento": [1, None],
            "valor_total_produtos": [2, 3],
            "valor_total_frete": [None, None],
        }, schema_overrides={"valor_total_frete": pl.Int64})
        result = OrderCleaner().normalize_nulls(df)

        assert result.schema["valor_total_pagamento"] == pl.Float64
        assert result["valor_total_frete"].to_list() == [0.0, 0.0]

    def test_works_on_lazy_frames(self, composed_df):
        result = OrderCleaner().normalize_nulls(composed_df.lazy()).collect()

        assert result["valor_total_pagamento"].null_count() == 0

    def test_qualification_filter(self, composed_df):
        """Only delivered orders with a delivery date survive"""
        result = OrderCleaner().filter_qualified(composed_df)

        assert result["order_id"].to_list() == ["o1"]

    def test_status_must_match_exactly(self):
        df = pl.DataFrame({
            "order_status": ["Delivered", "delivered ", "delivered"],
            "order_delivered_customer_date": [datetime(2024, 1, 1)] * 3,
        })
        result = OrderCleaner().filter_qualified(df)

        assert result.height == 1


class TestStandardizeOrderTimestamps:
    """Tests for standardize_order_timestamps"""

    def test_parses_text_timestamps(self):
        df = pl.DataFrame({
            "order_purchase_timestamp": ["2024-01-01 10:00:00", "2024-01-02 11:30:00"],
            "order_estimated_delivery_date": ["2024-01-08 00:00:00", "2024-01-09 00:00:00"],
            "order_delivered_customer_date": [None, None],
        }, schema_overrides={"order_delivered_customer_date": pl.Utf8})

        result = standardize_order_timestamps(df)

        assert result["order_purchase_timestamp"][0] == datetime(2024, 1, 1, 10, 0)
        assert isinstance(result.schema["order_delivered_customer_date"], pl.Datetime)
        assert result["order_delivered_customer_date"].null_count() == 2

    def test_widens_dates(self):
        df = pl.DataFrame({"order_purchase_timestamp": [datetime(2024, 1, 1).date()]})

        result = standardize_order_timestamps(df)

        assert result["order_purchase_timestamp"][0] == datetime(2024, 1, 1)

    def test_leaves_datetimes_untouched(self, sample_orders_df):
        result = standardize_order_timestamps(sample_orders_df)

        assert result.equals(sample_orders_df)
