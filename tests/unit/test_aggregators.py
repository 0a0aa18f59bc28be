"""
Unit Tests - Per-Entity Aggregation
"""
import polars as pl
import pytest

from order_analytics.schemas import ITEM_COLUMNS, PAYMENT_COLUMNS, REVIEW_COLUMNS
from order_analytics.transformation.aggregators import (
    aggregate_child_entities,
    aggregate_items,
    aggregate_payments,
    aggregate_reviews,
)


def _by_order(df: pl.DataFrame) -> dict:
    return {row["order_id"]: row for row in df.iter_rows(named=True)}


class TestPaymentsAggregator:
    """Tests for the payments summary"""

    def test_sums_payment_values(self, sample_payments_df):
        """Payment totals add every row of the order"""
        result = _by_order(aggregate_payments(sample_payments_df))

        assert result["A1"]["valor_total_pagamento"] == pytest.approx(40.0)
        assert result["A4"]["valor_total_pagamento"] == pytest.approx(100.0)

    def test_payment_methods_are_distinct(self, sample_payments_df):
        """A label used by several payments appears once"""
        result = _by_order(aggregate_payments(sample_payments_df))

        methods = result["A4"]["metodos_pagamento"].split(", ")
        assert sorted(methods) == ["credit_card", "voucher"]
        assert len(methods) == len(set(methods))

    def test_rendering_ignores_row_order(self, sample_payments_df):
        """Shuffled input renders the same method string"""
        forward = aggregate_payments(sample_payments_df).sort("order_id")
        backward = aggregate_payments(sample_payments_df.reverse()).sort("order_id")

        assert forward["metodos_pagamento"].to_list() == backward["metodos_pagamento"].to_list()

    def test_one_row_per_order(self, sample_payments_df):
        """Summary is unique per order and skips orders without payments"""
        result = aggregate_payments(sample_payments_df)

        assert result.height == result["order_id"].n_unique()
        assert sorted(result["order_id"].to_list()) == ["A1", "A2", "A4", "A7"]

    def test_null_payment_types_are_ignored(self):
        """Only null labels leave the method string absent"""
        df = pl.DataFrame({
            "order_id": ["X", "X", "Y"],
            "payment_value": [1.0, 2.0, 3.0],
            "payment_type": [None, "boleto", None],
        })
        result = _by_order(aggregate_payments(df))

        assert result["X"]["metodos_pagamento"] == "boleto"
        assert result["Y"]["metodos_pagamento"] is None
        assert result["Y"]["valor_total_pagamento"] == pytest.approx(3.0)

    def test_rows_without_order_id_are_dropped(self):
        """Null keys never form a summary row"""
        df = pl.DataFrame({
            "order_id": ["X", None],
            "payment_value": [1.0, 2.0],
            "payment_type": ["boleto", "voucher"],
        })
        result = aggregate_payments(df)

        assert result["order_id"].to_list() == ["X"]


class TestItemsAggregator:
    """Tests for the order items summary"""

    def test_sums_price_and_freight(self, sample_items_df):
        result = _by_order(aggregate_items(sample_items_df))

        assert result["A4"]["valor_total_produtos"] == pytest.approx(90.0)
        assert result["A4"]["valor_total_frete"] == pytest.approx(9.0)
        assert result["A1"]["valor_total_produtos"] == pytest.approx(35.0)


class TestReviewsAggregator:
    """Tests for the reviews summary"""

    def test_mean_score(self, sample_reviews_df):
        """Review score is the arithmetic mean"""
        result = _by_order(aggregate_reviews(sample_reviews_df))

        assert result["A1"]["review_score"] == pytest.approx(4.5)
        assert result["A4"]["review_score"] == pytest.approx(3.5)

    def test_no_row_for_orders_without_reviews(self, sample_reviews_df):
        result = aggregate_reviews(sample_reviews_df)

        assert "A3" not in result["order_id"].to_list()


class TestAggregateChildEntities:
    """Tests for the combined aggregation step"""

    def test_returns_every_summary(self, sample_snapshot):
        """All three summaries come back materialised and key-unique"""
        summaries = aggregate_child_entities(sample_snapshot.tables())

        assert set(summaries) == {"payments", "order_items", "reviews"}
        for summary in summaries.values():
            assert isinstance(summary, pl.DataFrame)
            assert summary.height == summary["order_id"].n_unique()

    def test_summary_columns(self, sample_snapshot):
        summaries = aggregate_child_entities(sample_snapshot.tables())

        assert summaries["payments"].columns == ["order_id", "valor_total_pagamento", "metodos_pagamento"]
        assert summaries["order_items"].columns == ["order_id", "valor_total_produtos", "valor_total_frete"]
        assert summaries["reviews"].columns == ["order_id", "review_score"]


class TestUntypedInput:
    """Relations whose columns carry no dtype"""

    def test_all_null_payment_types(self):
        """Labels that are all null give an absent method string"""
        df = pl.DataFrame({
            "order_id": ["X", "X"],
            "payment_value": [1.0, 2.0],
            "payment_type": [None, None],
        })
        result = _by_order(aggregate_payments(df))

        assert result["X"]["metodos_pagamento"] is None
        assert result["X"]["valor_total_pagamento"] == pytest.approx(3.0)

    def test_empty_relations(self):
        """Empty untyped relations give empty, typed summaries"""
        summaries = aggregate_child_entities({
            "payments": pl.DataFrame({c: [] for c in PAYMENT_COLUMNS}),
            "order_items": pl.DataFrame({c: [] for c in ITEM_COLUMNS}),
            "reviews": pl.DataFrame({c: [] for c in REVIEW_COLUMNS}),
        })

        for summary in summaries.values():
            assert summary.height == 0
            assert summary.schema["order_id"] == pl.Utf8
        assert summaries["payments"].schema["metodos_pagamento"] == pl.Utf8
        assert summaries["reviews"].schema["review_score"] == pl.Float64

    def test_integer_keys_become_text(self):
        df = pl.DataFrame({"order_id": [1, 1, 2], "review_score": [4, 5, 3]})
        result = _by_order(aggregate_reviews(df))

        assert result["1"]["review_score"] == pytest.approx(4.5)
