"""
RestRole - Bootstrap Claim Database Model

Coordination row for the single-execution bootstrap primitive.
Whoever holds an unexpired claim runs the bootstrap; a completed claim is final.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, Boolean

from restrole.metadata import BOOTSTRAP_CLAIMS_TABLE
from restrole.models.database.base import Base


class BootstrapClaimRow(Base):
    """
    Bootstrap claims table - one row per named claim
    """
    __tablename__ = BOOTSTRAP_CLAIMS_TABLE

    claim_name = Column(String, primary_key=True)
    holder_id = Column(String, nullable=False)
    claimed_at_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    lease_seconds = Column(Integer, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
