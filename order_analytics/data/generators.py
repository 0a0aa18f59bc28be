"""
Synthetic Snapshot Generator

Generates Olist-shaped source relations for development and tests.
Includes the awkward cases the transform has to survive:
- Orders with several payments, items and reviews
- Orders with no payments, no items or no reviews
- Orders that are not delivered or lack a delivery date
- Customers with unknown or missing state codes
- Orders whose customer is missing from the customers relation
"""

import random
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import polars as pl
import structlog
from faker import Faker

from order_analytics.config import get_settings
from order_analytics.ingestion.source_reader import FileFormat, SourceSnapshot

logger = structlog.get_logger(__name__)
settings = get_settings()


# =============================================================================
# CONFIGURATION
# =============================================================================

STATE_CODES = [
    "SP", "RJ", "MG", "ES", "PR", "SC", "RS", "BA", "SE", "AL", "PE", "PB",
    "RN", "CE", "PI", "MA", "MT", "MS", "GO", "DF", "AM", "RR", "AP", "PA",
    "TO", "RO", "AC",
]
# Codes outside every region, plus a missing one
UNKNOWN_STATES = ["XX", "", None]

PAYMENT_TYPES = ["credit_card", "boleto", "voucher", "debit_card"]

ORDER_STATUSES = [
    ("delivered", 0.80),
    ("shipped", 0.07),
    ("canceled", 0.04),
    ("processing", 0.03),
    ("invoiced", 0.03),
    ("unavailable", 0.03),
]


# =============================================================================
# GENERATOR
# =============================================================================

class SnapshotGenerator:
    """
    Reproducible generator of a five-relation snapshot.

    Example:
        snapshot = SnapshotGenerator(seed=7).generate(n_orders=500)
    """

    def __init__(
        self,
        seed: int = 42,
        unknown_state_rate: float = 0.02,
        orphan_order_rate: float = 0.01,
        missing_delivery_rate: float = 0.02,
    ):
        self.seed = seed
        self.unknown_state_rate = unknown_state_rate
        self.orphan_order_rate = orphan_order_rate
        self.missing_delivery_rate = missing_delivery_rate
        self.rng = np.random.default_rng(seed)
        self.random = random.Random(seed)
        self.fake = Faker("pt_BR")
        self.fake.seed_instance(seed)

    def _id(self) -> str:
        return uuid.UUID(int=self.random.getrandbits(128)).hex

    def generate_customers(self, n: int) -> pl.DataFrame:
        """Customers, each with its own customer_id and a shared unique id"""
        unique_ids = [self._id() for _ in range(max(1, int(n * 0.9)))]
        rows = []
        for _ in range(n):
            if self.rng.random() < self.unknown_state_rate:
                state = self.random.choice(UNKNOWN_STATES)
            else:
                state = self.random.choice(STATE_CODES)
            rows.append({
                "customer_id": self._id(),
                "customer_unique_id": self.random.choice(unique_ids),
                "customer_zip_code_prefix": f"{self.rng.integers(1000, 99999):05d}",
                "customer_city": self.fake.city().lower(),
                "customer_state": state,
            })
        return pl.DataFrame(rows, schema_overrides={"customer_state": pl.Utf8})

    def generate_orders(
        self,
        n: int,
        customer_ids: List[str],
        start_date: Optional[datetime] = None,
    ) -> pl.DataFrame:
        """Orders with purchase, estimated and actual delivery timestamps"""
        start_date = start_date or datetime(2017, 1, 1)
        statuses = [s[0] for s in ORDER_STATUSES]
        weights = [s[1] for s in ORDER_STATUSES]

        rows = []
        for _ in range(n):
            purchased = start_date + timedelta(
                days=int(self.rng.integers(0, 600)),
                seconds=int(self.rng.integers(0, 86400)),
            )
            estimated = (purchased + timedelta(days=int(self.rng.integers(7, 40)))).replace(
                hour=0, minute=0, second=0
            )
            status = self.random.choices(statuses, weights=weights)[0]

            delivered = None
            if status == "delivered" and self.rng.random() >= self.missing_delivery_rate:
                delivered = purchased + timedelta(
                    days=int(self.rng.integers(1, 45)),
                    seconds=int(self.rng.integers(0, 86400)),
                )

            if self.rng.random() < self.orphan_order_rate:
                customer_id = self._id()
            else:
                customer_id = self.random.choice(customer_ids)

            rows.append({
                "order_id": self._id(),
                "customer_id": customer_id,
                "order_status": status,
                "order_purchase_timestamp": purchased,
                "order_approved_at": purchased + timedelta(minutes=int(self.rng.integers(5, 600))),
                "order_delivered_carrier_date": None,
                "order_delivered_customer_date": delivered,
                "order_estimated_delivery_date": estimated,
            })
        return pl.DataFrame(
            rows,
            schema_overrides={
                "order_delivered_carrier_date": pl.Datetime("us"),
                "order_delivered_customer_date": pl.Datetime("us"),
            },
        )

    def generate_payments(self, order_ids: List[str]) -> pl.DataFrame:
        """Zero to three payments per order; vouchers often come in multiples"""
        rows = []
        for order_id in order_ids:
            n_payments = int(self.rng.choice([0, 1, 2, 3], p=[0.05, 0.80, 0.10, 0.05]))
            for sequential in range(1, n_payments + 1):
                rows.append({
                    "order_id": order_id,
                    "payment_sequential": sequential,
                    "payment_type": self.random.choice(PAYMENT_TYPES),
                    "payment_installments": int(self.rng.integers(1, 10)),
                    "payment_value": round(float(self.rng.uniform(5, 800)), 2),
                })
        return pl.DataFrame(
            rows,
            schema={
                "order_id": pl.Utf8,
                "payment_sequential": pl.Int64,
                "payment_type": pl.Utf8,
                "payment_installments": pl.Int64,
                "payment_value": pl.Float64,
            },
        )

    def generate_order_items(self, order_ids: List[str]) -> pl.DataFrame:
        rows = []
        for order_id in order_ids:
            n_items = int(self.rng.choice([0, 1, 2, 3, 4], p=[0.02, 0.75, 0.15, 0.05, 0.03]))
            for item_number in range(1, n_items + 1):
                rows.append({
                    "order_id": order_id,
                    "order_item_id": item_number,
                    "product_id": self._id(),
                    "seller_id": self._id(),
                    "price": round(float(self.rng.uniform(5, 600)), 2),
                    "freight_value": round(float(self.rng.uniform(0, 80)), 2),
                })
        return pl.DataFrame(
            rows,
            schema={
                "order_id": pl.Utf8,
                "order_item_id": pl.Int64,
                "product_id": pl.Utf8,
                "seller_id": pl.Utf8,
                "price": pl.Float64,
                "freight_value": pl.Float64,
            },
        )

    def generate_reviews(self, order_ids: List[str]) -> pl.DataFrame:
        rows = []
        for order_id in order_ids:
            n_reviews = int(self.rng.choice([0, 1, 2], p=[0.10, 0.85, 0.05]))
            for _ in range(n_reviews):
                rows.append({
                    "review_id": self._id(),
                    "order_id": order_id,
                    "review_score": int(self.rng.choice([1, 2, 3, 4, 5], p=[0.1, 0.05, 0.1, 0.2, 0.55])),
                })
        return pl.DataFrame(
            rows,
            schema={"review_id": pl.Utf8, "order_id": pl.Utf8, "review_score": pl.Int64},
        )

    def generate(self, n_orders: int = 1000, n_customers: Optional[int] = None) -> SourceSnapshot:
        """Generate a complete snapshot"""
        n_customers = n_customers or n_orders
        customers = self.generate_customers(n_customers)
        orders = self.generate_orders(n_orders, customers["customer_id"].to_list())
        order_ids = orders["order_id"].to_list()

        snapshot = SourceSnapshot(
            orders=orders,
            customers=customers,
            payments=self.generate_payments(order_ids),
            order_items=self.generate_order_items(order_ids),
            reviews=self.generate_reviews(order_ids),
        )
        logger.info("Generated synthetic snapshot", seed=self.seed, **snapshot.row_counts())
        return snapshot


def save_snapshot(
    snapshot: SourceSnapshot,
    output_dir: Optional[str] = None,
    file_format: FileFormat = FileFormat.CSV,
) -> Dict[str, Path]:
    """Write a snapshot using the file stems a SourceTableReader expects"""
    lake = settings.data_lake
    output = Path(output_dir or lake.raw_path)
    output.mkdir(parents=True, exist_ok=True)
    stems = {
        "orders": lake.orders_table,
        "customers": lake.customers_table,
        "payments": lake.payments_table,
        "order_items": lake.items_table,
        "reviews": lake.reviews_table,
    }

    paths = {}
    for name, df in snapshot.tables().items():
        path = output / f"{stems[name]}.{file_format.value}"
        if file_format == FileFormat.PARQUET:
            df.write_parquet(path)
        else:
            df.write_csv(path, datetime_format="%Y-%m-%d %H:%M:%S")
        paths[name] = path
        logger.info("Saved relation", relation=name, rows=df.height, file=str(path))
    return paths
