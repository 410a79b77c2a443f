"""Services package."""

from asset_ledger.services.catalog import SourceCatalog
from asset_ledger.services.storage import (
    AssetStorageInterface,
    AssetStore,
    AuditStorageInterface,
    InvalidArgumentError,
    JsonFileStateBackend,
    JsonLinesAuditStorage,
    LedgerPersistence,
    MemoryStateBackend,
    PersistenceError,
    StateBackendInterface,
    StorageError,
)

__all__ = [
    # Catalog
    "SourceCatalog",
    # Storage services
    "AssetStorageInterface",
    "AssetStore",
    "AuditStorageInterface",
    "InvalidArgumentError",
    "JsonFileStateBackend",
    "JsonLinesAuditStorage",
    "LedgerPersistence",
    "MemoryStateBackend",
    "PersistenceError",
    "StateBackendInterface",
    "StorageError",
]
