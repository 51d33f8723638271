"""
Storage Quota Probe
===================

Advisory estimate of how much room the local corpus has left. Usage is the
size of the SQLite database (including WAL side files); the total is that
usage plus the free space of the filesystem holding it.
"""

import shutil
from pathlib import Path
from typing import Union

from ..database.models import StorageQuota
from ..utils.logging import get_logger_for_component


class StorageQuotaProbe:
    """Estimate corpus storage usage for a database file."""

    SIDE_FILE_SUFFIXES = ("", "-wal", "-shm", "-journal")

    def __init__(self, db_path: Union[str, Path], warning_percent: float = 80.0):
        self.db_path = Path(db_path)
        self.warning_percent = warning_percent
        self.logger = get_logger_for_component("storage_quota")

    def used_bytes(self) -> int:
        """Size of the database file and its side files."""
        used = 0
        for suffix in self.SIDE_FILE_SUFFIXES:
            path = self.db_path.with_name(self.db_path.name + suffix)
            if path.exists():
                used += path.stat().st_size
        return used

    def estimate(self) -> StorageQuota:
        """Current usage report; all zeros when the filesystem can't be inspected."""
        try:
            used = self.used_bytes()
            directory = self.db_path.parent if self.db_path.parent.exists() else Path(".")
            free = shutil.disk_usage(directory).free
        except OSError as e:
            self.logger.warning(f"Storage estimate unavailable for {self.db_path}: {e}")
            return StorageQuota()

        quota = StorageQuota(used_bytes=used, total_bytes=used + free)

        if quota.is_near_limit(self.warning_percent):
            self.logger.warning(
                f"Storage usage at {quota.percentage:.1f}% "
                f"({quota.used_bytes} of {quota.total_bytes} bytes)"
            )
        return quota
