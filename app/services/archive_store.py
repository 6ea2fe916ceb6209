from typing import List

from app.core.logging import get_logger
from app.models.archive import ArchiveCycle
from app.repositories.base import ArchiveRepositoryInterface
from app.utils.mess_validation import NotFoundError

logger = get_logger(__name__)


class ArchiveStore:
    """Append-only history of closed cycles."""

    def __init__(self, archives: ArchiveRepositoryInterface):
        self.archive_repo = archives

    async def save(self, archive: ArchiveCycle) -> ArchiveCycle:
        await self.archive_repo.insert(archive)
        logger.info("archive_saved", archive_id=archive.id, members=len(archive.members))
        return archive

    async def list(self) -> List[ArchiveCycle]:
        """Archives, most recently closed first."""
        archives = await self.archive_repo.list_all()
        return sorted(archives, key=lambda a: (a.end_date, a.id), reverse=True)

    async def get(self, archive_id: str) -> ArchiveCycle:
        archive = await self.archive_repo.get(archive_id)
        if archive is None:
            raise NotFoundError("Archive", archive_id)
        return archive

    async def delete_archive(self, archive_id: str) -> None:
        """Permanently delete one archive. Nothing else is touched."""
        deleted = await self.archive_repo.delete(archive_id)
        if not deleted:
            raise NotFoundError("Archive", archive_id)
        logger.info("archive_deleted", archive_id=archive_id)
