"""
CycleService - closes the open cycle.

Closing a cycle:
1. Snapshot the ledger and compute stats + every member's settlement
2. Build an ArchiveCycle from that single snapshot
3. Persist the archive
4. Clear expenses and meal logs
5. Reset every deposit to 0

The ledger lock is held for all five steps. A failure in 1-3 leaves the ledger
untouched. A failure in 4-5 means the archive exists but the ledger was not
reset: InconsistentStateError is raised and further closes are refused until
retry_cleanup() succeeds.
"""

from enum import Enum
from typing import Optional

from app.core.logging import get_logger
from app.models.archive import ArchiveCycle, ArchivedMember
from app.services.archive_store import ArchiveStore
from app.services.ledger_store import LedgerStore
from app.services.settlement_engine import compute_all_settlements, compute_stats
from app.utils.mess_validation import InconsistentStateError

logger = get_logger(__name__)


class CycleState(str, Enum):
    OPEN = "open"
    CLOSING = "closing"


class CycleService:

    def __init__(self, ledger: LedgerStore, archives: ArchiveStore):
        self.ledger = ledger
        self.archives = archives
        self.state = CycleState.OPEN
        self.pending_cleanup_archive_id: Optional[str] = None

    @property
    def needs_cleanup(self) -> bool:
        return self.pending_cleanup_archive_id is not None

    def build_archive(self) -> ArchiveCycle:
        """Archive of the ledger as it stands; no side effects."""
        snapshot = self.ledger.snapshot()
        stats = compute_stats(snapshot)
        settlements = {s.member_id: s for s in compute_all_settlements(snapshot, stats)}

        members = [
            ArchivedMember(
                id=member.id,
                name=member.name,
                role=member.role,
                deposit=member.deposit,
                is_active=member.is_active,
                avatar=member.avatar,
                meals_eaten=settlements[member.id].meals_eaten,
                meal_cost=settlements[member.id].meal_cost,
                fixed_cost=settlements[member.id].fixed_cost,
                total_cost=settlements[member.id].total_cost,
                balance=settlements[member.id].balance,
            )
            for member in snapshot.members
        ]
        return ArchiveCycle(stats=stats, members=members)

    async def close_cycle(self) -> ArchiveCycle:
        async with self.ledger.exclusive():
            if self.needs_cleanup:
                raise InconsistentStateError(
                    "Previous cycle close did not finish resetting the ledger; "
                    "run the cleanup before closing again",
                    archive_id=self.pending_cleanup_archive_id,
                )

            self.state = CycleState.CLOSING
            try:
                archive = self.build_archive()
                logger.info("cycle_closing", archive_id=archive.id, members=len(archive.members))

                # Nothing has been mutated yet; a failure here propagates as is
                await self.archives.save(archive)

                try:
                    await self._cleanup_unlocked()
                except Exception as exc:
                    self.pending_cleanup_archive_id = archive.id
                    logger.error("cycle_cleanup_failed", archive_id=archive.id, error=str(exc))
                    raise InconsistentStateError(
                        f"Cycle archived as {archive.id} but the ledger was not reset: {exc}",
                        archive_id=archive.id,
                    ) from exc
            finally:
                self.state = CycleState.OPEN

        logger.info("cycle_closed", archive_id=archive.id)
        return archive

    async def retry_cleanup(self) -> None:
        """
        Finish a close whose cleanup failed. Safe to call repeatedly.

        Without a pending close this is a no-op: the open cycle has not been
        archived and must not be reset.
        """
        async with self.ledger.exclusive():
            if not self.needs_cleanup:
                logger.info("cycle_cleanup_skipped", reason="no_pending_close")
                return

            archive_id = self.pending_cleanup_archive_id
            try:
                await self._cleanup_unlocked()
            except Exception as exc:
                raise InconsistentStateError(
                    f"Ledger cleanup failed again: {exc}",
                    archive_id=archive_id,
                ) from exc
            self.pending_cleanup_archive_id = None

        logger.info("cycle_cleanup_done", archive_id=archive_id)

    async def _cleanup_unlocked(self) -> None:
        await self.ledger.clear_expenses_and_logs_unlocked()
        await self.ledger.reset_deposits_unlocked()
