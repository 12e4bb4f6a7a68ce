"""SQLAlchemy database models for the donation ledger"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()

def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

class DonationRecord(Base):
    """
    One recorded donation.
    Amounts are kept as decimal text so malformed values survive a round trip.
    Timestamps are naive UTC.
    """
    __tablename__ = 'donations'

    id = Column(String, primary_key=True)
    amount = Column(String, nullable=False)
    donor = Column(String, nullable=True, index=True)
    recipient = Column(String, nullable=True, index=True)
    timestamp = Column(DateTime, nullable=False, index=True, default=_utcnow)
    status = Column(String, nullable=False, default='completed')
    stellar_tx_id = Column(String, nullable=True)
    extra = Column(JSON, nullable=True)
