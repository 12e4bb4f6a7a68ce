"""Donation intake: validate against limits, then record in the ledger"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from donation_stats.models.transaction import DEFAULT_DONOR, Transaction, TransactionStatus
from donation_stats.models.validation import ValidationResult
from donation_stats.services.ledger import LedgerError, LedgerReader, LedgerUnavailableError
from donation_stats.validator import DonationValidator

logger = logging.getLogger(__name__)

MISSING_RECIPIENT = 'MISSING_RECIPIENT'
DONATION_NOT_FOUND = 'DONATION_NOT_FOUND'

DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 100

class DonationNotFoundError(LookupError):
    """No donation is recorded under the requested id"""
    code = DONATION_NOT_FOUND

class DonationService:
    """Handles donation submissions, lookups and listings"""

    def __init__(self, ledger: LedgerReader, validator: DonationValidator):
        self.ledger = ledger
        self.validator = validator

    def daily_total(self, donor: str):
        """Rolling daily total for a donor, straight from the ledger"""
        try:
            return self.ledger.get_daily_total_by_donor(donor)
        except LedgerError as e:
            logger.error(f"Ledger unavailable computing daily total for {donor}: {e}")
            raise LedgerUnavailableError(str(e)) from e

    def check(self, amount: Any, donor: Optional[str] = None) -> ValidationResult:
        """Run amount and daily limit checks without recording anything"""
        result = self.validator.validate_amount(amount)
        if not result.valid:
            return result
        return self.validator.validate_daily_limit(amount, self.daily_total(donor or DEFAULT_DONOR))

    def submit(
            self,
            amount: Any,
            recipient: Optional[str],
            donor: Optional[str] = None,
            status: Optional[TransactionStatus] = None
    ) -> Tuple[ValidationResult, Optional[Transaction]]:
        """
        Validate and record a donation.

        Nothing is written when a check fails.

        Args:
            amount: Donation amount
            recipient: Who receives the donation (required)
            donor: Who gives it, "Anonymous" when omitted
            status: Initial status, completed when omitted

        Returns:
            Tuple of (validation result, created transaction or None)

        Raises:
            LedgerUnavailableError: If the ledger cannot be read or written
        """
        if not recipient:
            return ValidationResult.reject(MISSING_RECIPIENT, "Missing required fields: amount, recipient"), None

        donor = donor or DEFAULT_DONOR
        result = self.check(amount, donor)
        if not result.valid:
            logger.info(f"Rejected donation from {donor}: {result.code}")
            return result, None

        data: Dict[str, Any] = {'amount': amount, 'donor': donor, 'recipient': recipient}
        if status:
            data['status'] = status
        try:
            transaction = self.ledger.create(data)
        except LedgerError as e:
            logger.error(f"Ledger unavailable recording donation from {donor}: {e}")
            raise LedgerUnavailableError(str(e)) from e

        return result, transaction

    def all(self) -> List[Transaction]:
        """Every recorded donation, in ledger order"""
        try:
            return self.ledger.get_all()
        except LedgerError as e:
            logger.error(f"Ledger unavailable listing donations: {e}")
            raise LedgerUnavailableError(str(e)) from e

    def get(self, transaction_id: str) -> Transaction:
        """
        Look up one donation.

        Raises:
            DonationNotFoundError: If no donation has this id
            LedgerUnavailableError: If the ledger cannot be read
        """
        try:
            transaction = self.ledger.get_by_id(transaction_id)
        except LedgerError as e:
            logger.error(f"Ledger unavailable looking up donation {transaction_id}: {e}")
            raise LedgerUnavailableError(str(e)) from e
        if transaction is None:
            raise DonationNotFoundError("Donation not found")
        return transaction

    def recent(self, limit: Any = DEFAULT_RECENT_LIMIT) -> List[Dict[str, Any]]:
        """
        Most recent donations, newest first, without external references.

        Raises:
            ValueError: If limit is not a positive integer
        """
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            raise ValueError("Invalid limit parameter. Must be a positive number.")
        if limit < 1:
            raise ValueError("Invalid limit parameter. Must be a positive number.")
        limit = min(limit, MAX_RECENT_LIMIT)

        try:
            transactions = self.ledger.get_recent(limit)
        except LedgerError as e:
            logger.error(f"Ledger unavailable listing recent donations: {e}")
            raise LedgerUnavailableError(str(e)) from e

        return [
            {
                'id': tx.id,
                'amount': tx.amount,
                'donor': tx.donor,
                'recipient': tx.recipient,
                'timestamp': tx.timestamp,
                'status': tx.status.value
            }
            for tx in transactions
        ]
