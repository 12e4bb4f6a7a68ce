"""
Tests for donation intake, lookups and listings.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest

from donation_stats.models.transaction import TransactionStatus
from donation_stats.services.donations import DonationNotFoundError, DonationService
from donation_stats.services.ledger import LedgerError, LedgerUnavailableError
from conftest import InMemoryLedger, make_tx, utc


class TestSubmit:
    """Validate, then record."""

    @pytest.fixture(autouse=True)
    def _service(self, validator):
        self.ledger = InMemoryLedger()
        self.service = DonationService(self.ledger, validator)

    def test_valid_donation_is_recorded(self):
        result, tx = self.service.submit(Decimal("25"), "Red Cross")

        assert result.valid is True
        assert tx.donor == "Anonymous"
        assert tx.recipient == "Red Cross"
        assert tx.status == TransactionStatus.COMPLETED
        assert self.ledger.get_by_id(tx.id) == tx

    def test_missing_recipient(self):
        result, tx = self.service.submit(Decimal("25"), None, donor="Alice")

        assert result.code == "MISSING_RECIPIENT"
        assert tx is None
        assert self.ledger.get_all() == []

    @pytest.mark.parametrize("amount,code", [
        ("abc", "INVALID_AMOUNT_TYPE"),
        (Decimal("0"), "AMOUNT_TOO_LOW"),
        (Decimal("0.001"), "AMOUNT_BELOW_MINIMUM"),
        (Decimal("10000.01"), "AMOUNT_EXCEEDS_MAXIMUM"),
    ])
    def test_invalid_amount_writes_nothing(self, amount, code):
        result, tx = self.service.submit(amount, "Red Cross", donor="Alice")

        assert result.valid is False
        assert result.code == code
        assert tx is None
        assert self.ledger.get_all() == []

    def test_daily_limit_counts_confirmed_donations(self):
        self.ledger.create({"amount": 2000, "donor": "Alice", "recipient": "Bob", "status": "confirmed"})
        self.ledger.create({"amount": 2000, "donor": "Alice", "recipient": "Bob", "status": "confirmed"})

        result, tx = self.service.submit(Decimal("1500"), "Bob", donor="Alice")
        assert result.code == "DAILY_LIMIT_EXCEEDED"
        assert result.remaining_daily == Decimal("1000")
        assert tx is None

        result, tx = self.service.submit(Decimal("1000"), "Bob", donor="Alice")
        assert result.valid is True
        assert tx is not None

    def test_daily_limit_ignores_failed_donations(self):
        self.ledger.create({"amount": 4500, "donor": "Alice", "recipient": "Bob", "status": "failed"})

        result, _ = self.service.submit(Decimal("4000"), "Bob", donor="Alice")
        assert result.valid is True

    def test_daily_limit_is_per_donor(self):
        self.ledger.create({"amount": 4500, "donor": "Alice", "recipient": "Bob"})

        assert self.service.check(Decimal("1000"), "Alice").code == "DAILY_LIMIT_EXCEEDED"
        assert self.service.check(Decimal("1000"), "Dave").valid is True

    def test_exact_cap_is_allowed(self):
        self.ledger.create({"amount": 4500, "donor": "Alice", "recipient": "Bob"})
        assert self.service.check(Decimal("500"), "Alice").valid is True

    def test_anonymous_donations_share_a_total(self):
        self.ledger.create({"amount": 4900, "recipient": "Bob"})
        assert self.service.check(Decimal("200")).code == "DAILY_LIMIT_EXCEEDED"

    def test_ledger_failure_is_not_a_rejection(self, validator):
        ledger = Mock()
        ledger.get_daily_total_by_donor.side_effect = LedgerError("locked")

        with pytest.raises(LedgerUnavailableError):
            DonationService(ledger, validator).submit(Decimal("10"), "Bob", donor="Alice")

    def test_write_failure(self, validator):
        ledger = Mock()
        ledger.get_daily_total_by_donor.return_value = Decimal("0")
        ledger.create.side_effect = LedgerError("disk full")

        with pytest.raises(LedgerUnavailableError):
            DonationService(ledger, validator).submit(Decimal("10"), "Bob")


class TestRecent:
    """Newest-first listing with a bounded limit."""

    @pytest.fixture(autouse=True)
    def _service(self, validator):
        base = utc(2024, 2, 1, 12)
        self.ledger = InMemoryLedger([
            make_tx(f"tx{i}", 10 + i, base + timedelta(hours=i)) for i in range(120)
        ])
        self.service = DonationService(self.ledger, validator)

    def test_default_limit(self):
        assert len(self.service.recent()) == 10

    def test_newest_first(self):
        assert [d["id"] for d in self.service.recent(3)] == ["tx119", "tx118", "tx117"]

    def test_limit_is_clamped(self):
        assert len(self.service.recent(500)) == 100

    def test_numeric_string_limit(self):
        assert len(self.service.recent("5")) == 5

    @pytest.mark.parametrize("limit", ["abc", 0, -3, None])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValueError):
            self.service.recent(limit)

    def test_external_reference_not_exposed(self):
        entry = self.service.recent(1)[0]

        assert set(entry) == {"id", "amount", "donor", "recipient", "timestamp", "status"}
        assert entry["status"] == "completed"

    def test_ledger_failure(self, validator):
        ledger = Mock()
        ledger.get_recent.side_effect = LedgerError("gone")

        with pytest.raises(LedgerUnavailableError):
            DonationService(ledger, validator).recent()


class TestLookup:
    """Listing everything and fetching one donation by id."""

    @pytest.fixture(autouse=True)
    def _service(self, validator, sample_transactions):
        self.ledger = InMemoryLedger(sample_transactions)
        self.service = DonationService(self.ledger, validator)

    def test_all_in_ledger_order(self):
        assert [tx.id for tx in self.service.all()] == ["t1", "t2", "t3", "t4"]

    def test_all_on_empty_ledger(self, validator):
        assert DonationService(InMemoryLedger(), validator).all() == []

    def test_get(self):
        tx = self.service.get("t3")

        assert tx.amount == Decimal("25.5")
        assert tx.recipient == "Unicef"

    def test_get_unknown_id(self):
        with pytest.raises(DonationNotFoundError) as exc:
            self.service.get("nope")

        assert exc.value.code == "DONATION_NOT_FOUND"
        assert str(exc.value) == "Donation not found"

    def test_ledger_failure(self, validator):
        ledger = Mock()
        ledger.get_by_id.side_effect = LedgerError("gone")
        ledger.get_all.side_effect = LedgerError("gone")
        service = DonationService(ledger, validator)

        with pytest.raises(LedgerUnavailableError):
            service.get("t1")
        with pytest.raises(LedgerUnavailableError):
            service.all()
