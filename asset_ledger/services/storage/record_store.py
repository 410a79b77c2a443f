"""
In-Memory Asset Record Store

The store is the only place ids and update timestamps are assigned.
Records live in an insertion-ordered dict; every create, update and
delete ends with a flush of the ledger document.

The store does not re-validate business rules (amount ranges, known
sources). It only refuses input that would break its own invariants:
an empty source label or a cleared required field.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Union

from pydantic import ValidationError

from asset_ledger.models.asset import Asset, AssetCreate, AssetUpdate
from asset_ledger.services.storage.interface import (
    AssetStorageInterface,
    InvalidArgumentError,
)

if TYPE_CHECKING:
    from asset_ledger.audit import AuditLogger
    from asset_ledger.services.storage.persistence import LedgerPersistence


_REQUIRED_FIELDS = ("source", "amount", "month")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_source(source: Optional[str]) -> str:
    if source is None or not source.strip():
        raise InvalidArgumentError("Asset source must be a non-empty string")
    return source


class AssetStore(AssetStorageInterface):
    """
    Asset records keyed by a monotonically increasing integer id.

    Ids are never reused, even after the highest record is deleted.
    """

    def __init__(
        self,
        persistence: Optional["LedgerPersistence"] = None,
        audit_logger: Optional["AuditLogger"] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._assets: dict[int, Asset] = {}
        self._next_id = 1
        self._persistence = persistence
        self._audit_logger = audit_logger
        self._clock = clock or _utcnow

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._assets)

    def load_state(self, assets: Iterable[Asset], next_id: int) -> None:
        """
        Replace the store contents with persisted records.

        `next_id` is raised above the highest loaded id if the
        document carries a stale counter.
        """
        self._assets = {asset.id: asset for asset in assets}
        highest = max(self._assets, default=0)
        self._next_id = max(next_id, highest + 1)

    def export_state(self) -> tuple[list[Asset], int]:
        return list(self._assets.values()), self._next_id

    def _now(self, previous: Optional[datetime] = None) -> datetime:
        # updated_at never moves backwards for a record
        now = self._clock()
        if previous is not None and now < previous:
            return previous
        return now

    async def _flush(self) -> None:
        if self._persistence:
            await self._persistence.flush()

    async def get_all_assets(self) -> list[Asset]:
        return list(self._assets.values())

    async def get_asset(self, asset_id: int) -> Optional[Asset]:
        return self._assets.get(asset_id)

    async def create_asset(self, data: Union[AssetCreate, dict]) -> Asset:
        """Assign id and updated_at, store, flush."""
        if not isinstance(data, AssetCreate):
            try:
                data = AssetCreate.model_validate(data)
            except ValidationError as e:
                raise InvalidArgumentError(f"Invalid asset: {e}") from e
        _require_source(data.source)

        asset = Asset(
            id=self._next_id,
            source=data.source,
            amount=data.amount,
            month=data.month,
            description=data.description,
            updated_at=self._now(),
        )
        self._next_id += 1
        self._assets[asset.id] = asset

        if self._audit_logger:
            await self._audit_logger.log_asset_created(asset.id, asset.source, asset.amount)
        await self._flush()
        return asset

    async def update_asset(
        self,
        asset_id: int,
        changes: Union[AssetUpdate, dict],
    ) -> Optional[Asset]:
        """
        Shallow-merge supplied fields and refresh updated_at.

        updated_at is refreshed even when no field changes.
        """
        existing = self._assets.get(asset_id)
        if existing is None:
            return None

        if not isinstance(changes, AssetUpdate):
            try:
                changes = AssetUpdate.model_validate(changes)
            except ValidationError as e:
                raise InvalidArgumentError(f"Invalid update for asset {asset_id}: {e}") from e
        fields = changes.changes()

        for name in _REQUIRED_FIELDS:
            if name in fields and fields[name] is None:
                raise InvalidArgumentError(f"Asset {name} can not be cleared")
        if "source" in fields:
            _require_source(fields["source"])

        merged = existing.model_dump()
        merged.update(fields)
        merged["id"] = existing.id
        merged["updated_at"] = self._now(existing.updated_at)
        try:
            updated = Asset.model_validate(merged)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid update for asset {asset_id}: {e}") from e

        self._assets[asset_id] = updated

        if self._audit_logger:
            await self._audit_logger.log_asset_updated(asset_id, sorted(fields))
        await self._flush()
        return updated

    async def delete_asset(self, asset_id: int) -> bool:
        if self._assets.pop(asset_id, None) is None:
            return False

        if self._audit_logger:
            await self._audit_logger.log_asset_deleted(asset_id)
        await self._flush()
        return True
