"""
Custom exceptions for the sales analytics pipeline.

Loading failures raise ValidationError, malformed report definitions raise
ConfigurationError. Both derive from SalesAnalyticsError so callers can catch
everything the library raises in one place.
"""

from dataclasses import dataclass, field
from typing import List, Optional


class SalesAnalyticsError(Exception):
    """Base exception for all sales analytics errors."""

    pass


@dataclass
class RejectedRecord:
    """A single input record that failed validation"""
    row_number: int
    invoice_id: Optional[str]
    reasons: List[str] = field(default_factory=list)

    def describe(self) -> str:
        ident = self.invoice_id if self.invoice_id is not None else "<missing invoice_id>"
        return f"row {self.row_number} ({ident}): {'; '.join(self.reasons)}"


class ValidationError(SalesAnalyticsError):
    """Exception raised when input sales records fail validation."""

    def __init__(
        self,
        message: str,
        records: Optional[List[RejectedRecord]] = None,
        source: Optional[str] = None,
    ):
        self.records = records or []
        self.source = source

        error_parts = [message]

        if source:
            error_parts.append(f"source: {source}")

        if self.records:
            shown = [r.describe() for r in self.records[:5]]
            if len(self.records) > 5:
                shown.append(f"... and {len(self.records) - 5} more")
            error_parts.append("offending records: " + ", ".join(shown))

        super().__init__(" | ".join(error_parts))


class ConfigurationError(SalesAnalyticsError):
    """Exception raised when a report definition is malformed."""

    def __init__(self, message: str, report_name: Optional[str] = None):
        self.report_name = report_name

        if report_name:
            message = f"Report '{report_name}': {message}"

        super().__init__(message)
