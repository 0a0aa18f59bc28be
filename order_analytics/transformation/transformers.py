"""
Order Analytics Transformer

Orchestrates one run over a source snapshot:
aggregation -> composition -> enrichment -> null normalization ->
qualification filter, followed by optional validation and a Parquet write
to the curated zone.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import polars as pl
import structlog

from order_analytics.config import get_settings
from order_analytics.exceptions import OrderAnalyticsError, OrphanOrderError
from order_analytics.ingestion.source_reader import SourceSnapshot
from order_analytics.quality.validators import (
    ValidationResult,
    create_order_analytics_validator,
    validate_snapshot,
)
from order_analytics.schemas import OUTPUT_COLUMNS, OrderAnalyticsRecord
from .aggregators import aggregate_child_entities
from .cleaners import (
    CleaningStats,
    OrderCleaner,
    standardize_keys,
    standardize_order_timestamps,
)
from .composer import OrderComposer, find_orphan_orders
from .enrichers import OrderEnricher

logger = structlog.get_logger(__name__)
settings = get_settings()


@dataclass
class TransformResult:
    """Result of one order analytics run"""
    input_orders: int
    output_rows: int
    rows_dropped: int
    orphan_orders: int
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    data: Optional[pl.DataFrame] = None
    output_path: Optional[str] = None
    validation: Optional[ValidationResult] = None
    source_validation: Dict[str, ValidationResult] = field(default_factory=dict)


class OrderAnalyticsTransformer:
    """
    One denormalized analytics row per delivered order.

    Child relations are aggregated to one row per order before they meet the
    order, so payments, items and reviews can never multiply order rows.

    Example:
        transformer = OrderAnalyticsTransformer()
        result = transformer.run(snapshot)
        result.data  # polars DataFrame of OrderAnalyticsRecord rows
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        enable_validation: Optional[bool] = None,
        write_output: Optional[bool] = None,
        require_customer_match: Optional[bool] = None,
    ):
        pipeline = settings.pipeline
        self.output_path = Path(output_path or settings.data_lake.curated_path)
        self.enable_validation = (
            settings.data_quality.enable_data_quality_checks
            if enable_validation is None else enable_validation
        )
        self.write_output = pipeline.write_output if write_output is None else write_output
        self.require_customer_match = (
            pipeline.require_customer_match
            if require_customer_match is None else require_customer_match
        )
        self.composer = OrderComposer()
        self.enricher = OrderEnricher()
        self.cleaner = OrderCleaner()

    def _check_customers(self, orders: pl.DataFrame, customers: pl.DataFrame) -> List[str]:
        """Apply the customer match policy; returns the excluded order ids"""
        orphans = find_orphan_orders(orders, customers)
        if not orphans:
            return orphans
        if self.require_customer_match:
            raise OrphanOrderError(orphans)
        logger.warning(
            "Orders without a customer excluded",
            orphan_orders=len(orphans),
            sample=orphans[:5],
        )
        return orphans

    def build(self, snapshot: SourceSnapshot) -> Tuple[pl.DataFrame, CleaningStats, List[str]]:
        """
        Run the transform over a snapshot.

        Returns:
            The output frame sorted by order_id, row counts around the
            qualification filter, and the excluded orphan order ids
        """
        snapshot.validate_columns()
        tables = snapshot.tables()
        orders = standardize_order_timestamps(standardize_keys(snapshot.orders))
        customers = standardize_keys(snapshot.customers)
        orphans = self._check_customers(orders, customers)

        # Join barrier: every summary is materialised before composition
        summaries = aggregate_child_entities(tables)

        composed = self.composer.compose(orders.lazy(), customers.lazy(), summaries)
        enriched = self.enricher.enrich(composed)
        normalized = self.cleaner.normalize_nulls(enriched)

        composed_df = normalized.collect()
        output = (
            self.cleaner.filter_qualified(composed_df)
            .select(OUTPUT_COLUMNS)
            .sort("order_id")
        )

        stats = CleaningStats(composed_rows=composed_df.height, qualified_rows=output.height)
        logger.info(
            "Order analytics built",
            input_orders=orders.height,
            composed_rows=stats.composed_rows,
            output_rows=stats.qualified_rows,
            not_qualified=stats.rows_dropped,
        )
        return output, stats, orphans

    def transform(self, snapshot: SourceSnapshot) -> pl.DataFrame:
        """Output rows only"""
        output, _, _ = self.build(snapshot)
        return output

    def _write_output(self, df: pl.DataFrame, name: Optional[str] = None) -> str:
        """Write the analytics rows to the curated zone"""
        name = name or settings.pipeline.output_name
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        self.output_path.mkdir(parents=True, exist_ok=True)
        output_file = self.output_path / f"{name}_{timestamp}.parquet"

        df.write_parquet(output_file)
        logger.info("Written order analytics", rows=df.height, file=str(output_file))

        return str(output_file)

    def run(self, snapshot: SourceSnapshot) -> TransformResult:
        """
        Full run: validate sources, transform, validate output, write.

        Validation findings are logged and attached to the result; they do
        not stop the run. Operational failures are logged and re-raised.
        """
        started_at = datetime.utcnow()
        input_orders = snapshot.orders.height

        logger.info("Starting order analytics run", source=snapshot.source_dir, **snapshot.row_counts())

        try:
            snapshot.validate_columns()
            source_validation = {}
            if self.enable_validation:
                source_validation = validate_snapshot(
                    snapshot.tables(), strict_mode=settings.data_quality.strict_mode
                )

            output, stats, orphans = self.build(snapshot)

            validation = None
            if self.enable_validation:
                validation = create_order_analytics_validator(
                    strict_mode=settings.data_quality.strict_mode
                ).validate(output)

            output_file = self._write_output(output) if self.write_output else None

        except (OrderAnalyticsError, OSError, pl.exceptions.PolarsError) as e:
            logger.error("Order analytics run failed", error=str(e), error_type=type(e).__name__)
            raise

        completed_at = datetime.utcnow()
        result = TransformResult(
            input_orders=input_orders,
            output_rows=output.height,
            rows_dropped=input_orders - output.height,
            orphan_orders=len(orphans),
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
            data=output,
            output_path=output_file,
            validation=validation,
            source_validation=source_validation,
        )

        logger.info(
            "Order analytics run complete",
            input_orders=result.input_orders,
            output_rows=result.output_rows,
            rows_dropped=result.rows_dropped,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result


def build_order_analytics(
    snapshot: SourceSnapshot,
    require_customer_match: bool = False,
) -> pl.DataFrame:
    """
    Pure transform of a snapshot into order analytics rows.

    No validation and no file output; the same snapshot always yields the
    same frame.
    """
    transformer = OrderAnalyticsTransformer(
        enable_validation=False,
        write_output=False,
        require_customer_match=require_customer_match,
    )
    return transformer.transform(snapshot)


def iter_records(df: pl.DataFrame) -> Iterator[OrderAnalyticsRecord]:
    """Stream output rows as OrderAnalyticsRecord models"""
    for row in df.iter_rows(named=True):
        yield OrderAnalyticsRecord(**row)
