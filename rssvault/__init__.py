"""
RSSVault - Local Feed Archive
=============================

Ingests RSS 2.0 and Atom feeds into a deduplicated, size-bounded local corpus.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: Environment variables with Pydantic validation
- Ingestion: HTTPS fetching, feed parsing, HTML sanitization, deduplication
- Storage: Feed registry over repository classes
"""

__version__ = "1.0.0"
__author__ = "RSSVault Development Team"
__description__ = "Deduplicated, size-bounded RSS/Atom archive"

# Core imports for easy access
from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import RSSVaultError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "RSSVaultError",
]
