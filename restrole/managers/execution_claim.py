"""
RestRole - Execution Claim

Single-execution coordination. Among all execution contexts that try to run
a named job, exactly one wins the claim; the rest treat the job as handled.

- LeaseExecutionClaim: claim row with a renewable lease in the backing database
- LocalExecutionClaim: in-process claims for single-process hosts
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, OperationalError

from restrole.exceptions import StorageUnavailableError
from restrole.managers.database_manager import DatabaseManager
from restrole.models.database import BootstrapClaimRow
from restrole.models.infrastructure import BootstrapLease

logger = logging.getLogger(__name__)


class ExecutionClaim(ABC):
    """Grants a named job to exactly one caller"""

    # Seconds between renewals while a claim is held; None if claims never expire
    renew_interval_seconds: Optional[float] = None

    @abstractmethod
    async def TryClaim(self, claim_name: str) -> bool:
        """
        Attempt to claim a job

        Returns:
            bool: True if this caller must run the job, False if another
                  caller holds it or it has already completed
        """
        pass

    @abstractmethod
    async def Renew(self, claim_name: str) -> bool:
        """
        Extend a held, unfinished claim

        Returns:
            bool: True if this caller still holds the claim
        """
        pass

    @abstractmethod
    async def MarkCompleted(self, claim_name: str) -> bool:
        """
        Record that the job finished; the claim is never granted again

        Returns:
            bool: False if the claim was no longer held by this caller
        """
        pass

    @abstractmethod
    async def Release(self, claim_name: str) -> None:
        """Give up an unfinished claim so a later caller can retry the job"""
        pass


class LeaseExecutionClaim(ExecutionClaim):
    """
    Claim rows with a lease

    A claim is granted when no row exists, or when the stored claim is
    unfinished and its lease has run out (its holder is presumed dead).
    A live holder renews its lease every third of lease_seconds.
    Races resolve through the primary key and a compare-and-set update.
    """

    def __init__(self, db_manager: DatabaseManager, lease_seconds: int = 300, holder_id: Optional[str] = None):
        """
        Initialize lease claim

        Args:
            db_manager: DatabaseManager holding the claims table
            lease_seconds: How long an unrenewed claim is held before others may take over
            holder_id: Identity written to claim rows (default: random UUID)
        """
        self.db_manager = db_manager
        self.lease_seconds = lease_seconds
        self.holder_id = holder_id or str(uuid.uuid4())
        self.renew_interval_seconds = lease_seconds / 3

    async def TryClaim(self, claim_name: str) -> bool:
        return await asyncio.to_thread(self._TryClaim, claim_name)

    async def Renew(self, claim_name: str) -> bool:
        return await asyncio.to_thread(self._Renew, claim_name)

    async def MarkCompleted(self, claim_name: str) -> bool:
        return await asyncio.to_thread(self._MarkCompleted, claim_name)

    async def Release(self, claim_name: str) -> None:
        await asyncio.to_thread(self._Release, claim_name)

    def _EnsureClaimsTable(self) -> None:
        try:
            self.db_manager.InitializeDatabase(tables=[BootstrapClaimRow.__table__])
        except OperationalError as e:
            if "already exists" not in str(e.orig):
                raise StorageUnavailableError(f"Could not create claims table: {e.orig}") from e

    def _TryClaim(self, claim_name: str) -> bool:
        self._EnsureClaimsTable()

        session = self.db_manager.GetSession()
        try:
            row = session.query(BootstrapClaimRow).filter(BootstrapClaimRow.claim_name == claim_name).first()

            if row is None:
                session.add(BootstrapClaimRow(
                    claim_name=claim_name,
                    holder_id=self.holder_id,
                    claimed_at_utc=datetime.now(timezone.utc),
                    lease_seconds=self.lease_seconds,
                    completed=False
                ))
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    logger.info(f"Claim '{claim_name}' taken concurrently by another holder")
                    return False
                logger.info(f"Claim '{claim_name}' acquired by {self.holder_id}")
                return True

            lease = BootstrapLease(
                claim_name=row.claim_name,
                holder_id=row.holder_id,
                claimed_at_utc=row.claimed_at_utc,
                lease_seconds=row.lease_seconds,
                completed=row.completed
            )

            if lease.completed:
                logger.info(f"Claim '{claim_name}' already completed")
                return False

            if not lease.IsExpired():
                logger.info(
                    f"Claim '{claim_name}' held by {lease.holder_id} "
                    f"(renewed {lease.ElapsedSeconds()} seconds ago)"
                )
                return False

            # Take over the expired lease, unless someone else just did
            result = session.execute(
                update(BootstrapClaimRow)
                .where(BootstrapClaimRow.claim_name == claim_name)
                .where(BootstrapClaimRow.holder_id == lease.holder_id)
                .where(BootstrapClaimRow.completed.is_(False))
                .values(
                    holder_id=self.holder_id,
                    claimed_at_utc=datetime.now(timezone.utc),
                    lease_seconds=self.lease_seconds
                )
            )
            session.commit()

            if result.rowcount != 1:
                logger.info(f"Expired claim '{claim_name}' taken over by another holder")
                return False

            logger.info(f"Expired claim '{claim_name}' of {lease.holder_id} taken over by {self.holder_id}")
            return True

        except OperationalError as e:
            session.rollback()
            raise StorageUnavailableError(f"Could not claim '{claim_name}': {e.orig}") from e
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()

    def _UpdateHeldClaim(self, claim_name: str, **values) -> bool:
        """Update this holder's unfinished claim row; False if it is not ours anymore"""
        session = self.db_manager.GetSession()
        try:
            result = session.execute(
                update(BootstrapClaimRow)
                .where(BootstrapClaimRow.claim_name == claim_name)
                .where(BootstrapClaimRow.holder_id == self.holder_id)
                .where(BootstrapClaimRow.completed.is_(False))
                .values(**values)
            )
            session.commit()
            return result.rowcount == 1
        except OperationalError as e:
            session.rollback()
            raise StorageUnavailableError(f"Could not update claim '{claim_name}': {e.orig}") from e
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()

    def _Renew(self, claim_name: str) -> bool:
        renewed = self._UpdateHeldClaim(claim_name, claimed_at_utc=datetime.now(timezone.utc))
        if renewed:
            logger.debug(f"Claim '{claim_name}' renewed by {self.holder_id}")
        else:
            logger.warning(f"Claim '{claim_name}' is no longer held by {self.holder_id}")
        return renewed

    def _MarkCompleted(self, claim_name: str) -> bool:
        completed = self._UpdateHeldClaim(claim_name, completed=True)
        if completed:
            logger.info(f"Claim '{claim_name}' completed")
        else:
            logger.warning(f"Claim '{claim_name}' lost by {self.holder_id} before completion")
        return completed

    def _Release(self, claim_name: str) -> None:
        session = self.db_manager.GetSession()
        try:
            session.execute(
                delete(BootstrapClaimRow)
                .where(BootstrapClaimRow.claim_name == claim_name)
                .where(BootstrapClaimRow.holder_id == self.holder_id)
                .where(BootstrapClaimRow.completed.is_(False))
            )
            session.commit()
            logger.info(f"Claim '{claim_name}' released")
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()


class LocalExecutionClaim(ExecutionClaim):
    """
    In-process claims

    Only coordinates callers sharing this instance; see process_claim.
    Claim checks never suspend, so they are atomic on the event loop.
    """

    HELD = "held"
    COMPLETED = "completed"

    def __init__(self):
        self.claims: Dict[str, str] = {}

    async def TryClaim(self, claim_name: str) -> bool:
        if claim_name in self.claims:
            return False
        self.claims[claim_name] = self.HELD
        return True

    async def Renew(self, claim_name: str) -> bool:
        return self.claims.get(claim_name) == self.HELD

    async def MarkCompleted(self, claim_name: str) -> bool:
        if self.claims.get(claim_name) != self.HELD:
            return False
        self.claims[claim_name] = self.COMPLETED
        return True

    async def Release(self, claim_name: str) -> None:
        if self.claims.get(claim_name) == self.HELD:
            del self.claims[claim_name]


# Process-wide claims shared by every manager built without an explicit claim
process_claim = LocalExecutionClaim()
