"""
RestRole - Bootstrap Lease Model

Dataclass for representing a held bootstrap claim.
"""

from datetime import datetime, timezone
from dataclasses import dataclass


@dataclass
class BootstrapLease:
    """
    Represents a claim on the single-execution bootstrap
    """
    claim_name: str
    holder_id: str
    claimed_at_utc: datetime
    lease_seconds: int
    completed: bool = False

    def ElapsedSeconds(self) -> int:
        """Get elapsed time since the claim was taken"""
        claimed_at = self.claimed_at_utc
        # SQLite hands back naive datetimes
        if claimed_at.tzinfo is None:
            claimed_at = claimed_at.replace(tzinfo=timezone.utc)
        return int((datetime.now(timezone.utc) - claimed_at).total_seconds())

    def IsExpired(self) -> bool:
        """Check if lease has expired based on its duration"""
        return self.ElapsedSeconds() >= self.lease_seconds
