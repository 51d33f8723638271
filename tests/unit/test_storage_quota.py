"""
Unit Tests for the Storage Quota Probe
======================================
"""

import logging
from collections import namedtuple
from unittest.mock import patch

from rssvault.monitoring.storage_quota import StorageQuotaProbe

DiskUsage = namedtuple("DiskUsage", "total used free")


class TestStorageQuotaProbe:
    """Test cases for StorageQuotaProbe."""

    def test_used_bytes_counts_side_files(self, tmp_path):
        db_path = tmp_path / "vault.db"
        db_path.write_bytes(b"x" * 100)
        (tmp_path / "vault.db-wal").write_bytes(b"x" * 20)

        assert StorageQuotaProbe(db_path).used_bytes() == 120

    def test_missing_database_uses_nothing(self, tmp_path):
        assert StorageQuotaProbe(tmp_path / "missing.db").used_bytes() == 0

    def test_estimate_adds_free_space(self, tmp_path):
        db_path = tmp_path / "vault.db"
        db_path.write_bytes(b"x" * 100)

        with patch("rssvault.monitoring.storage_quota.shutil.disk_usage",
                   return_value=DiskUsage(1000, 600, 300)):
            quota = StorageQuotaProbe(db_path).estimate()

        assert quota.used_bytes == 100
        assert quota.total_bytes == 400
        assert quota.percentage == 25.0

    def test_near_limit_logs_warning(self, tmp_path, caplog):
        db_path = tmp_path / "vault.db"
        db_path.write_bytes(b"x" * 900)
        caplog.set_level(logging.WARNING, logger="rssvault.storage_quota")

        with patch("rssvault.monitoring.storage_quota.shutil.disk_usage",
                   return_value=DiskUsage(1000, 900, 100)):
            quota = StorageQuotaProbe(db_path, warning_percent=80.0).estimate()

        assert quota.is_near_limit()
        assert "Storage usage at 90.0%" in caplog.text

    def test_unreadable_filesystem_returns_empty_quota(self, tmp_path):
        with patch("rssvault.monitoring.storage_quota.shutil.disk_usage",
                   side_effect=OSError("unavailable")):
            quota = StorageQuotaProbe(tmp_path / "vault.db").estimate()

        assert quota.used_bytes == 0
        assert quota.total_bytes == 0
