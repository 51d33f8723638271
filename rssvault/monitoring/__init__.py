"""
Storage Monitoring Module
=========================

Provides advisory storage usage estimates for the local corpus.
"""

from .storage_quota import StorageQuotaProbe

__all__ = ['StorageQuotaProbe']
