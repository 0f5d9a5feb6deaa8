"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- World state (versioned key-value records)
- Transaction log
- Chain Metadata
"""

from ledgerbid.core.storage.sqlite_adapter import SQLiteAdapter
from ledgerbid.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
