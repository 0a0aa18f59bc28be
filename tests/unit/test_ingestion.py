"""
Unit Tests - Snapshot Reading and Generation
"""
import polars as pl
import pytest

from order_analytics.data import SnapshotGenerator, save_snapshot
from order_analytics.exceptions import MissingColumnError, SourceTableError
from order_analytics.ingestion import FileFormat, SourceTableReader
from order_analytics.transformation import build_order_analytics


class TestSourceTableReader:
    """Tests for SourceTableReader"""

    @pytest.mark.parametrize("file_format", [FileFormat.CSV, FileFormat.PARQUET])
    def test_round_trip_gives_same_output(self, sample_snapshot, tmp_path, file_format):
        """A saved and re-read snapshot transforms to the same rows"""
        save_snapshot(sample_snapshot, str(tmp_path), file_format=file_format)

        snapshot = SourceTableReader(file_format=file_format).read_snapshot(tmp_path)

        assert snapshot.row_counts() == sample_snapshot.row_counts()
        assert snapshot.source_dir == str(tmp_path)
        assert build_order_analytics(snapshot).equals(build_order_analytics(sample_snapshot))

    def test_csv_keeps_identifiers_as_text(self, tmp_path):
        df = pl.DataFrame({"order_id": ["001", "002"], "payment_value": [1, 2], "payment_type": ["a", "b"]})
        path = tmp_path / "payments.csv"
        df.write_csv(path)

        result = SourceTableReader()._read_csv(path)

        assert result["order_id"].to_list() == ["001", "002"]
        assert result.schema["payment_value"] == pl.Float64

    def test_missing_relation_raises(self, sample_snapshot, tmp_path):
        paths = save_snapshot(sample_snapshot, str(tmp_path))
        paths["reviews"].unlink()

        with pytest.raises(SourceTableError, match="reviews"):
            SourceTableReader(file_format=FileFormat.CSV).read_snapshot(tmp_path)

    def test_missing_column_raises(self, sample_snapshot, tmp_path):
        paths = save_snapshot(sample_snapshot, str(tmp_path), file_format=FileFormat.PARQUET)
        sample_snapshot.customers.drop("customer_state").write_parquet(paths["customers"])

        with pytest.raises(MissingColumnError) as exc_info:
            SourceTableReader(file_format="parquet").read_snapshot(tmp_path)

        assert exc_info.value.table == "customers"


class TestSnapshotGenerator:
    """Tests for SnapshotGenerator"""

    def test_reproducible(self):
        first = SnapshotGenerator(seed=3).generate(n_orders=50)
        second = SnapshotGenerator(seed=3).generate(n_orders=50)

        for name, df in first.tables().items():
            assert df.equals(second.tables()[name]), name

    def test_required_columns_present(self):
        snapshot = SnapshotGenerator(seed=3).generate(n_orders=50)

        snapshot.validate_columns()
        assert snapshot.orders.height == 50

    def test_children_reference_orders(self):
        snapshot = SnapshotGenerator(seed=3).generate(n_orders=50)
        order_ids = set(snapshot.orders["order_id"].to_list())

        for name in ("payments", "order_items", "reviews"):
            assert set(snapshot.tables()[name]["order_id"].to_list()) <= order_ids
