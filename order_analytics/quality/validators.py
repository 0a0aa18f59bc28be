"""
Data Validation Module

Rule-based checks over the source relations and the consolidated order
analytics rows. Failed checks are reported and logged; they never stop a
run or remove rows.

Features:
- Null, uniqueness, range and allowed-value checks
- Referential integrity between relations
- Pre-built suites for the output rows and the source snapshot
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from order_analytics.schemas import (
    DELIVERY_STATUSES,
    MONETARY_COLUMNS,
    REGION_LABELS,
    REVIEW_SCORE,
)

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def failures(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Fluent builder of validation checks over one relation.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("order_id").add_unique_check("order_id")
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False, name: str = "relation"):
        self.strict_mode = strict_mode  # Warnings count as failures
        self.name = name
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def reset(self) -> None:
        self._checks = []

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"not_null_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            null_count = df[column].null_count()
            total = df.height
            return ValidationCheck(
                name=name,
                passed=null_count == 0,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values",
                details={"null_count": null_count},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"unique_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            total = df.height
            duplicate_count = total - df[column].n_unique()
            return ValidationCheck(
                name=name,
                passed=duplicate_count == 0,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within [min_value, max_value]; nulls are ignored"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"range_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)
            if not conditions:
                return ValidationCheck(name=name, passed=True, severity=severity, message="No range specified")

            out_of_range = df.filter(pl.any_horizontal(conditions)).height
            return ValidationCheck(
                name=name,
                passed=out_of_range == 0,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside [{min_value}, {max_value}]",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_non_negative_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        return self.add_range_check(column, min_value=0, severity=severity)

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"enum_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            invalid = df.filter(
                ~pl.col(column).is_in(allowed_values) & pl.col(column).is_not_null()
            ).height
            return ValidationCheck(
                name=name,
                passed=invalid == 0,
                severity=severity,
                message=f"Column '{column}' has {invalid} values outside {allowed_values}",
                details={"allowed_values": allowed_values, "invalid_count": invalid},
                failed_rows=invalid,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: Optional[str] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that every non-null value exists in reference_df"""
        reference_column = reference_column or column

        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"ref_integrity_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            keys = reference_df.select(pl.col(reference_column).alias(column)).unique()
            orphans = df.filter(pl.col(column).is_not_null()).join(keys, on=column, how="anti").height
            return ValidationCheck(
                name=name,
                passed=orphans == 0,
                severity=severity,
                message=f"Column '{column}' has {orphans} rows without a match in '{reference_column}'",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.utcnow()
        results = []

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    "Validation check failed",
                    relation=self.name,
                    check=result.name,
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            "Validation complete",
            relation=self.name,
            status=status.value,
            rows=df.height,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.utcnow(),
        )


def create_order_analytics_validator(strict_mode: bool = False) -> DataValidator:
    """Checks over the consolidated rows"""
    validator = (
        DataValidator(strict_mode=strict_mode, name="order_analytics")
        .add_not_null_check("order_id")
        .add_unique_check("order_id")
        .add_not_null_check("order_delivered_customer_date")
        .add_enum_check("order_status", ["delivered"])
        .add_enum_check("delivery_status", DELIVERY_STATUSES)
        .add_enum_check("customer_region", REGION_LABELS)
        .add_range_check(REVIEW_SCORE, min_value=1, max_value=5, severity=ValidationSeverity.WARNING)
        .add_non_negative_check("delivery_lead_time_days", severity=ValidationSeverity.WARNING)
        .add_non_negative_check("promised_lead_time_days", severity=ValidationSeverity.WARNING)
    )
    for col in MONETARY_COLUMNS:
        validator.add_not_null_check(col).add_non_negative_check(col)
    return validator


def create_source_validators(
    tables: Dict[str, pl.DataFrame],
    strict_mode: bool = False,
) -> Dict[str, DataValidator]:
    """
    Checks over the source relations, keyed by relation name.

    Dangling references are warnings; the transform drops or ignores them.
    """
    orders = tables["orders"]
    validators = {
        "orders": (
            DataValidator(strict_mode=strict_mode, name="orders")
            .add_not_null_check("order_id")
            .add_unique_check("order_id")
            .add_referential_integrity_check(
                "customer_id", tables["customers"], severity=ValidationSeverity.WARNING
            )
        ),
        "customers": (
            DataValidator(strict_mode=strict_mode, name="customers")
            .add_not_null_check("customer_id")
            .add_unique_check("customer_id", severity=ValidationSeverity.WARNING)
        ),
    }
    for name in ("payments", "order_items", "reviews"):
        validators[name] = (
            DataValidator(strict_mode=strict_mode, name=name)
            .add_not_null_check("order_id", severity=ValidationSeverity.WARNING)
            .add_referential_integrity_check("order_id", orders, severity=ValidationSeverity.WARNING)
        )
    validators["payments"].add_non_negative_check("payment_value", severity=ValidationSeverity.WARNING)
    validators["order_items"].add_non_negative_check("price", severity=ValidationSeverity.WARNING)
    validators["order_items"].add_non_negative_check("freight_value", severity=ValidationSeverity.WARNING)
    validators["reviews"].add_range_check(
        "review_score", min_value=1, max_value=5, severity=ValidationSeverity.WARNING
    )
    return validators


def validate_snapshot(
    tables: Dict[str, pl.DataFrame],
    strict_mode: bool = False,
) -> Dict[str, ValidationResult]:
    """Run create_source_validators over every relation"""
    validators = create_source_validators(tables, strict_mode=strict_mode)
    return {name: validator.validate(tables[name]) for name, validator in validators.items()}
