"""Donation amount and daily limit validation"""
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from donation_stats.models.validation import ValidationLimits, ValidationResult

INVALID_AMOUNT_TYPE = 'INVALID_AMOUNT_TYPE'
AMOUNT_TOO_LOW = 'AMOUNT_TOO_LOW'
AMOUNT_BELOW_MINIMUM = 'AMOUNT_BELOW_MINIMUM'
AMOUNT_EXCEEDS_MAXIMUM = 'AMOUNT_EXCEEDS_MAXIMUM'
DAILY_LIMIT_EXCEEDED = 'DAILY_LIMIT_EXCEEDED'

def to_decimal(value: Any) -> Optional[Decimal]:
    """Exact Decimal for a finite int, float or Decimal; None for anything else"""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None

class DonationValidator:
    """Checks donations against configured limits. Holds no state besides the limits."""

    def __init__(self, limits: ValidationLimits):
        self.limits = limits

    def validate_amount(self, amount: Any) -> ValidationResult:
        """Check a single donation amount against the min/max bounds (both inclusive)"""
        value = to_decimal(amount)
        if value is None:
            return ValidationResult.reject(INVALID_AMOUNT_TYPE, "Amount must be a valid number")

        if value <= 0:
            return ValidationResult.reject(AMOUNT_TOO_LOW, "Amount must be greater than zero")

        if value < self.limits.min_amount:
            return ValidationResult.reject(
                AMOUNT_BELOW_MINIMUM,
                f"Amount must be at least {self.limits.min_amount} XLM",
                min_amount=self.limits.min_amount
            )

        if value > self.limits.max_amount:
            return ValidationResult.reject(
                AMOUNT_EXCEEDS_MAXIMUM,
                f"Amount cannot exceed {self.limits.max_amount} XLM",
                max_amount=self.limits.max_amount
            )

        return ValidationResult.ok()

    def validate_daily_limit(self, amount: Any, current_daily_total: Any) -> ValidationResult:
        """
        Check that a donation keeps the donor within the daily cap.

        Reaching the cap exactly is allowed. Always passes when the cap is disabled.

        Args:
            amount: Amount of the new donation
            current_daily_total: What the donor already gave today

        Returns:
            ValidationResult with remaining_daily on rejection
        """
        if not self.limits.daily_cap_enabled:
            return ValidationResult.ok()

        value = to_decimal(amount)
        current = to_decimal(current_daily_total)
        if value is None or current is None:
            return ValidationResult.reject(INVALID_AMOUNT_TYPE, "Amount must be a valid number")

        cap = self.limits.max_daily_per_donor
        if current + value > cap:
            return ValidationResult.reject(
                DAILY_LIMIT_EXCEEDED,
                f"Daily donation limit exceeded. Maximum {cap} XLM per day",
                max_daily_amount=cap,
                current_daily_total=current,
                remaining_daily=max(Decimal(0), cap - current)
            )

        return ValidationResult.ok()

    def get_limits(self) -> ValidationLimits:
        """Configured thresholds, unchanged"""
        return self.limits

    def is_valid_range(self, amount: Any) -> bool:
        value = to_decimal(amount)
        if value is None:
            return False
        return self.limits.min_amount <= value <= self.limits.max_amount
