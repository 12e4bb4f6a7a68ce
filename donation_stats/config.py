"""Application configuration and environment settings"""
from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from donation_stats.models.validation import ValidationLimits

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Donation limits
    MIN_DONATION_AMOUNT: Decimal = Field(Decimal("0.01"), description="Minimum amount accepted per donation")
    MAX_DONATION_AMOUNT: Decimal = Field(Decimal("10000"), description="Maximum amount accepted per donation")
    MAX_DAILY_DONATION_PER_DONOR: Decimal = Field(Decimal("0"), description="Daily cap per donor, 0 disables it")

    # Ledger settings
    LEDGER_BACKEND: Literal["json", "sql"] = Field("json", description="Transaction store backend")
    DB_PATH: str = Field("./data/donations.json", description="Path of the flat-file JSON ledger")
    DATABASE_URL: str = Field("sqlite:///./data/donations.db", description="SQLAlchemy URL of the relational ledger")

    LOG_LEVEL: str = Field("INFO", description="Root log level")

    @property
    def validation_limits(self) -> ValidationLimits:
        """Get donation limits as a separate immutable model"""
        return ValidationLimits(
            min_amount=self.MIN_DONATION_AMOUNT,
            max_amount=self.MAX_DONATION_AMOUNT,
            max_daily_per_donor=self.MAX_DAILY_DONATION_PER_DONOR
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

settings = Settings()
