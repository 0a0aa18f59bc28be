"""
Order Analytics Exceptions

Raised for operational failures only. Data conditions (orders without a
customer, unknown state codes, missing child rows) are modelled as absent
values and never raise, except for the opt-in customer match policy.
"""

from typing import List, Sequence


class OrderAnalyticsError(Exception):
    """Base class for all order analytics failures"""


class SourceTableError(OrderAnalyticsError):
    """A source relation could not be located or read"""


class MissingColumnError(SourceTableError):
    """A source relation lacks columns the pipeline reads"""

    def __init__(self, table: str, columns: Sequence[str]):
        self.table = table
        self.columns: List[str] = list(columns)
        super().__init__(f"Relation '{table}' is missing columns: {', '.join(self.columns)}")


class OrphanOrderError(OrderAnalyticsError):
    """Orders reference a customer that is not in the snapshot"""

    def __init__(self, order_ids: Sequence[str]):
        self.order_ids: List[str] = list(order_ids)
        preview = ", ".join(self.order_ids[:5])
        super().__init__(
            f"{len(self.order_ids)} orders have no matching customer (e.g. {preview})"
        )


class DuplicateSummaryError(OrderAnalyticsError):
    """A per-order summary holds more than one row for some order"""

    def __init__(self, summary: str, key: str):
        self.summary = summary
        self.key = key
        super().__init__(f"Summary '{summary}' is not unique per {key}")
