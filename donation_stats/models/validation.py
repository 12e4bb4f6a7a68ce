"""Donation limit and validation result models"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

class ValidationLimits(BaseModel):
    """
    Process-wide donation thresholds.

    Built once from settings and handed to each validator explicitly.
    A max_daily_per_donor of 0 disables the daily cap.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    min_amount: Decimal = Decimal("0.01")
    max_amount: Decimal = Decimal("10000")
    max_daily_per_donor: Decimal = Decimal("0")

    @model_validator(mode='after')
    def check_thresholds(self) -> 'ValidationLimits':
        if self.min_amount < 0 or self.max_amount < 0 or self.max_daily_per_donor < 0:
            raise ValueError("Donation limits must not be negative")
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        return self

    @property
    def daily_cap_enabled(self) -> bool:
        return self.max_daily_per_donor != 0

class ValidationResult(BaseModel):
    """
    Outcome of a donation rule check. Returned as data, never raised.

    Attributes:
        valid: Whether the donation passed the check
        code: Machine-readable rejection code
        error: Human-readable rejection message
        min_amount / max_amount: Echoed bound for amount rejections
        max_daily_amount / current_daily_total / remaining_daily: Daily limit context
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    valid: bool
    code: Optional[str] = None
    error: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    max_daily_amount: Optional[Decimal] = None
    current_daily_total: Optional[Decimal] = None
    remaining_daily: Optional[Decimal] = None

    @classmethod
    def ok(cls) -> 'ValidationResult':
        return cls(valid=True)

    @classmethod
    def reject(cls, code: str, error: str, **context: Any) -> 'ValidationResult':
        return cls(valid=False, code=code, error=error, **context)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, dropping unset context"""
        return self.model_dump(by_alias=True, exclude_none=True)
