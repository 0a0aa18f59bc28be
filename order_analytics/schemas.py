"""
Record Schemas

Column names of the source relations and the consolidated
OrderAnalyticsRecord emitted once per qualifying order.
"""

from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# Source relations and the columns the pipeline reads from each
ORDER_COLUMNS = [
    "order_id",
    "customer_id",
    "order_status",
    "order_purchase_timestamp",
    "order_estimated_delivery_date",
    "order_delivered_customer_date",
]
CUSTOMER_COLUMNS = ["customer_id", "customer_unique_id", "customer_city", "customer_state"]
PAYMENT_COLUMNS = ["order_id", "payment_value", "payment_type"]
ITEM_COLUMNS = ["order_id", "price", "freight_value"]
REVIEW_COLUMNS = ["order_id", "review_score"]

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    "orders": ORDER_COLUMNS,
    "customers": CUSTOMER_COLUMNS,
    "payments": PAYMENT_COLUMNS,
    "order_items": ITEM_COLUMNS,
    "reviews": REVIEW_COLUMNS,
}

# Identifier columns, compared as text across relations
KEY_COLUMNS = ["order_id", "customer_id", "customer_unique_id"]

ORDER_TIMESTAMP_COLUMNS = [
    "order_purchase_timestamp",
    "order_estimated_delivery_date",
    "order_delivered_customer_date",
]

# Aggregate columns
TOTAL_PAYMENT = "valor_total_pagamento"
PAYMENT_METHODS = "metodos_pagamento"
TOTAL_PRODUCTS = "valor_total_produtos"
TOTAL_FREIGHT = "valor_total_frete"
REVIEW_SCORE = "review_score"

MONETARY_COLUMNS = [TOTAL_PAYMENT, TOTAL_PRODUCTS, TOTAL_FREIGHT]

PAYMENT_METHOD_SEPARATOR = ", "

OUTPUT_COLUMNS = [
    "order_id",
    "customer_unique_id",
    "order_status",
    "customer_city",
    "customer_state",
    "customer_region",
    "order_purchase_timestamp",
    "order_delivered_customer_date",
    "order_estimated_delivery_date",
    "delivery_lead_time_days",
    "promised_lead_time_days",
    "delivery_status",
    TOTAL_PAYMENT,
    TOTAL_PRODUCTS,
    TOTAL_FREIGHT,
    PAYMENT_METHODS,
    REVIEW_SCORE,
]


class OrderAnalyticsRecord(BaseModel):
    """One consolidated row per delivered order"""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_id: str
    customer_unique_id: Optional[str] = None
    order_status: str
    customer_city: Optional[str] = None
    customer_state: Optional[str] = None
    customer_region: str
    order_purchase_timestamp: Optional[datetime] = None
    order_delivered_customer_date: datetime
    order_estimated_delivery_date: Optional[datetime] = None
    delivery_lead_time_days: Optional[int] = None
    promised_lead_time_days: Optional[int] = None
    delivery_status: str
    valor_total_pagamento: float = Field(default=0.0, ge=0)
    valor_total_produtos: float = Field(default=0.0, ge=0)
    valor_total_frete: float = Field(default=0.0, ge=0)
    metodos_pagamento: Optional[str] = None
    review_score: Optional[float] = None

    @property
    def payment_methods(self) -> List[str]:
        """Distinct payment method labels"""
        if not self.metodos_pagamento:
            return []
        return self.metodos_pagamento.split(PAYMENT_METHOD_SEPARATOR)


# Brazilian state code to region, evaluated in order, first match wins
REGION_RULES: List[Tuple[FrozenSet[str], str]] = [
    (frozenset({"SP", "RJ", "MG", "ES"}), "Southeast"),
    (frozenset({"PR", "SC", "RS"}), "South"),
    (frozenset({"BA", "SE", "AL", "PE", "PB", "RN", "CE", "PI", "MA"}), "Northeast"),
    (frozenset({"MT", "MS", "GO", "DF"}), "Midwest"),
    (frozenset({"AM", "RR", "AP", "PA", "TO", "RO", "AC"}), "North"),
]
DEFAULT_REGION = "Other"
REGION_LABELS = [label for _, label in REGION_RULES] + [DEFAULT_REGION]

STATUS_DELAYED = "Delayed"
STATUS_ON_TIME = "On Time"
DELIVERY_STATUSES = [STATUS_DELAYED, STATUS_ON_TIME]
