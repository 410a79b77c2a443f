"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Swap the JSON document for a real database later
2. Use in-memory backends for testing
3. Keep the source catalog decoupled from how records are kept

Only the operations the ledger actually performs are declared.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from asset_ledger.models.asset import (
    Asset,
    AssetCreate,
    AssetUpdate,
    LedgerState,
)
from asset_ledger.models.audit import AuditEvent


class AssetStorageInterface(ABC):
    """
    Abstract interface for asset record storage.

    Not-found is a normal result here: lookups return None,
    deletes return False. Nothing raises for a missing id.
    """

    @abstractmethod
    async def get_all_assets(self) -> list[Asset]:
        """
        List every stored asset.

        Returns:
            Assets in insertion order; callers sort as needed
        """
        pass

    @abstractmethod
    async def get_asset(self, asset_id: int) -> Optional[Asset]:
        """
        Retrieve an asset by its ID.

        Args:
            asset_id: The store-assigned identifier

        Returns:
            The asset if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_asset(self, data: Union[AssetCreate, dict]) -> Asset:
        """
        Store a new asset.

        Args:
            data: Source, amount, month and optional description

        Returns:
            The stored asset with id and updated_at assigned

        Raises:
            InvalidArgumentError: If the source label is empty
        """
        pass

    @abstractmethod
    async def update_asset(
        self,
        asset_id: int,
        changes: Union[AssetUpdate, dict],
    ) -> Optional[Asset]:
        """
        Merge supplied fields onto an existing asset.

        Args:
            asset_id: The asset to update
            changes: Fields to overwrite; omitted fields are kept

        Returns:
            The updated asset, or None if it doesn't exist

        Raises:
            InvalidArgumentError: If a required field is cleared
        """
        pass

    @abstractmethod
    async def delete_asset(self, asset_id: int) -> bool:
        """
        Delete an asset by ID.

        Args:
            asset_id: The asset to remove

        Returns:
            True if an asset was removed, False if none existed
        """
        pass


class StateBackendInterface(ABC):
    """
    Abstract interface for the durable ledger document.

    The whole document is read once at startup and rewritten
    on every flush.
    """

    @abstractmethod
    async def load(self) -> Optional[LedgerState]:
        """
        Read the persisted ledger document.

        Returns:
            The document, or None if nothing has been saved yet

        Raises:
            PersistenceError: If the document exists but can't be read
        """
        pass

    @abstractmethod
    async def save(self, state: LedgerState) -> bool:
        """
        Replace the persisted ledger document.

        Returns:
            True if saved successfully

        Raises:
            PersistenceError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Where audit events are kept.

    Append-only: there is no update or delete.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Store one event.

        Returns:
            False if the event could not be written
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Events about one asset, source label or the ledger itself.

        Args:
            entity_type: Type of entity ('asset', 'source', 'ledger')
            entity_id: Asset id or source label

        Returns:
            Events oldest first
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Up to `limit` events, newest first.
        """
        pass


class StorageError(Exception):
    """Base class for errors raised by the ledger stores."""
    pass


class InvalidArgumentError(StorageError, ValueError):
    """Caller broke the input contract (e.g. an empty source label)."""
    pass


class PersistenceError(StorageError):
    """Could not read or write the durable backend."""
    pass
