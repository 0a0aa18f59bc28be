"""
Synthetic Olist Snapshot Generator
Writes a reproducible five-relation snapshot and builds its order analytics
"""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from order_analytics.config.logging import configure_logging
from order_analytics.data.generators import SnapshotGenerator, save_snapshot
from order_analytics.ingestion import FileFormat, SourceTableReader
from order_analytics.transformation import OrderAnalyticsTransformer

N_ORDERS = int(os.getenv("N_ORDERS", "10000"))
OUTPUT_DIR = Path(__file__).parent.parent / "data" / "generated"
CURATED_DIR = Path(__file__).parent.parent / "data" / "curated"


def main():
    configure_logging()

    print("=" * 60)
    print("🛒 Olist Snapshot Generator")
    print("=" * 60 + "\n")

    snapshot = SnapshotGenerator(seed=42).generate(n_orders=N_ORDERS)
    paths = save_snapshot(snapshot, str(OUTPUT_DIR), FileFormat.CSV)

    for name, path in paths.items():
        size = path.stat().st_size / 1024 / 1024
        print(f"   📄 {path.name}: {snapshot.tables()[name].height:,} rows ({size:.2f} MB)")

    # Read back from disk so the run exercises the CSV path
    reloaded = SourceTableReader(file_format=FileFormat.CSV).read_snapshot(OUTPUT_DIR)
    result = OrderAnalyticsTransformer(output_path=str(CURATED_DIR)).run(reloaded)

    print("\n" + "=" * 60)
    print("✅ Order analytics built")
    print("=" * 60)
    print(f"   Orders in snapshot: {result.input_orders:,}")
    print(f"   Analytics rows:     {result.output_rows:,}")
    print(f"   Orphan orders:      {result.orphan_orders:,}")
    if result.validation is not None:
        print(f"   Output validation:  {result.validation.status.value}")
    print(f"\n📁 Output: {result.output_path}\n")


if __name__ == "__main__":
    main()
