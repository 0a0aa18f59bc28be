"""
Data Quality Module
"""
from .validators import (
    DataValidator,
    ValidationResult,
    create_order_analytics_validator,
    validate_snapshot,
)

__all__ = [
    "DataValidator",
    "ValidationResult",
    "create_order_analytics_validator",
    "validate_snapshot",
]
