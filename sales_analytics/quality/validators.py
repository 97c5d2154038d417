"""
Data Validation Module

Rule-based validation of sales records, inspired by Great Expectations.

Every check reports the positions of the rows it rejects, so the loader can
name the offending records instead of failing on a column-level summary.

Features:
- Required column checks
- Null checks
- Uniqueness checks (first occurrence wins)
- Range and pattern checks
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import polars as pl
import structlog

from sales_analytics.schema import INVOICE_ID, REQUIRED_COLUMNS

logger = structlog.get_logger(__name__)

ROW_INDEX = "__row_nr"


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # record is rejected
    WARNING = "warning"  # logged, record is kept
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
    failed_indices: List[int] = field(default_factory=list)
    total_rows: int = 0

    @property
    def failed_rows(self) -> int:
        return len(self.failed_indices)


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def schema_errors(self) -> List[ValidationCheck]:
        """Failed ERROR checks that concern the whole input, not single rows"""
        return [
            c for c in self.checks
            if not c.passed and c.severity == ValidationSeverity.ERROR and not c.failed_indices
        ]

    def errors_by_row(self) -> Dict[int, List[str]]:
        """Map each rejected row position to the messages of the checks it failed"""
        errors: Dict[int, List[str]] = defaultdict(list)
        for check in self.checks:
            if check.passed or check.severity != ValidationSeverity.ERROR:
                continue
            for idx in check.failed_indices:
                errors[idx].append(check.message)
        return dict(sorted(errors.items()))


CheckFunc = Callable[[pl.DataFrame], ValidationCheck]


class DataValidator:
    """
    Sales data validator with a fluent check suite.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("invoice_id")
        validator.add_range_check("rating", min_value=0, max_value=10)
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[CheckFunc] = []

    def _missing_column(self, name: str, column: str, severity: ValidationSeverity, total: int) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
            total_rows=total,
        )

    def _row_check(
        self,
        name: str,
        column: str,
        mask: Callable[[], pl.Expr],
        severity: ValidationSeverity,
        fail_message: str,
        pass_message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "DataValidator":
        """Register a check that fails the rows matching mask()"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            total = len(df)
            if column not in df.columns:
                return self._missing_column(name, column, severity, total)

            failed = df.filter(mask())[ROW_INDEX].to_list()
            passed = not failed

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=pass_message if passed else fail_message,
                details={**(details or {}), "failed_count": len(failed)},
                failed_indices=failed,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_required_columns_check(
        self,
        columns: Sequence[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that every required column is present"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in columns if c not in df.columns]
            passed = not missing
            return ValidationCheck(
                name="required_columns",
                passed=passed,
                severity=severity,
                message="All required columns present" if passed else f"Missing required columns: {missing}",
                details={"missing": missing},
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        return self._row_check(
            name=f"not_null_{column}",
            column=column,
            mask=lambda: pl.col(column).is_null(),
            severity=severity,
            fail_message=f"'{column}' is missing",
            pass_message=f"Column '{column}' has no null values",
        )

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values; the first occurrence is kept"""
        return self._row_check(
            name=f"unique_{column}",
            column=column,
            mask=lambda: pl.col(column).is_not_null() & ~pl.col(column).is_first_distinct(),
            severity=severity,
            fail_message=f"duplicate '{column}'",
            pass_message=f"Column '{column}' values are unique",
        )

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        inclusive_min: bool = True,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def mask() -> pl.Expr:
            conditions = [pl.lit(False)]
            if min_value is not None:
                below = pl.col(column) < min_value if inclusive_min else pl.col(column) <= min_value
                conditions.append(below)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)
            return pl.any_horizontal(conditions)

        bracket = "[" if inclusive_min else "("
        return self._row_check(
            name=f"range_{column}",
            column=column,
            mask=mask,
            severity=severity,
            fail_message=f"'{column}' outside range {bracket}{min_value}, {max_value}]",
            pass_message="All values in range",
            details={"min": min_value, "max": max_value},
        )

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for positive values"""
        return self.add_range_check(column, min_value=0, severity=severity, inclusive_min=allow_zero)

    def add_pattern_check(
        self,
        column: str,
        pattern: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add regex pattern check"""
        return self._row_check(
            name=f"pattern_{column}",
            column=column,
            mask=lambda: pl.col(column).is_not_null() & ~pl.col(column).cast(pl.Utf8).str.contains(pattern),
            severity=severity,
            fail_message=f"'{column}' does not match {pattern}",
            pass_message="All values match pattern",
            details={"pattern": pattern},
        )

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now(timezone.utc)
        indexed = df.with_row_index(ROW_INDEX)
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows")

        for check_func in self._checks:
            result = check_func(indexed)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                    failed_rows=result.failed_rows,
                )

        completed_at = datetime.now(timezone.utc)

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

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.info(
            f"Validation complete: {status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result


def create_sales_validator() -> DataValidator:
    """Create pre-configured validator for sales records"""
    validator = DataValidator().add_required_columns_check(REQUIRED_COLUMNS)

    for column in REQUIRED_COLUMNS:
        validator.add_not_null_check(column)

    return (
        validator
        .add_unique_check(INVOICE_ID)
        .add_pattern_check(INVOICE_ID, r"^\d{3}-\d{2}-\d{4}$", severity=ValidationSeverity.WARNING)
        .add_positive_check("quantity", allow_zero=False, severity=ValidationSeverity.WARNING)
        .add_positive_check("unit_price", allow_zero=False, severity=ValidationSeverity.WARNING)
        .add_range_check("rating", min_value=0, max_value=10, severity=ValidationSeverity.WARNING)
        .add_range_check("gross_margin_pct", min_value=0, max_value=100, severity=ValidationSeverity.WARNING)
        .add_positive_check("total", severity=ValidationSeverity.WARNING)
        .add_positive_check("vat", severity=ValidationSeverity.WARNING)
        .add_positive_check("cogs", severity=ValidationSeverity.WARNING)
    )
