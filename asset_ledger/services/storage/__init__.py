"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Records are kept in memory and flushed as one JSON document, but the
backend is designed to be swappable.
"""

from asset_ledger.services.storage.interface import (
    AssetStorageInterface,
    AuditStorageInterface,
    InvalidArgumentError,
    PersistenceError,
    StateBackendInterface,
    StorageError,
)
from asset_ledger.services.storage.json_file import (
    JsonFileStateBackend,
    JsonLinesAuditStorage,
    MemoryStateBackend,
)
from asset_ledger.services.storage.persistence import LedgerPersistence
from asset_ledger.services.storage.record_store import AssetStore

__all__ = [
    # Interfaces
    "AssetStorageInterface",
    "AuditStorageInterface",
    "StateBackendInterface",
    # Exceptions
    "InvalidArgumentError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "AssetStore",
    "JsonFileStateBackend",
    "JsonLinesAuditStorage",
    "LedgerPersistence",
    "MemoryStateBackend",
]
