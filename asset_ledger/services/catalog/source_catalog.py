"""
Source Catalog

The set of valid source labels is never stored directly. It is derived
on every read from three backing sets:

    visible = (builtins - hidden) + custom     (deduplicated)

- builtins: the fixed BuiltinSource enumeration, never mutated
- custom: labels added by users, plus rename targets
- hidden: builtin labels masked out by a delete or a rename

DESIGN DECISION: Builtin labels can't be removed, only hidden. A rename of
a builtin hides the original and adds the new label to `custom`, recording
where it came from in `renamed_from` so the builtin color follows it.

Records referencing a label that is no longer visible are tolerated.
The catalog never blocks a record write; it only refuses to delete a
label while some record still uses it.
"""

from contextlib import nullcontext
from typing import TYPE_CHECKING, Iterable, Optional

import structlog

from asset_ledger.models.asset import (
    BUILTIN_SOURCES,
    DEFAULT_SOURCE_COLOR,
    SOURCE_COLORS,
    AssetUpdate,
    SourceCatalogState,
    SourceName,
)
from asset_ledger.services.storage.interface import (
    AssetStorageInterface,
    InvalidArgumentError,
)

if TYPE_CHECKING:
    from asset_ledger.audit import AuditLogger
    from asset_ledger.services.storage.persistence import LedgerPersistence


logger = structlog.get_logger(__name__)


def _require_name(name: Optional[str], what: str = "Source name") -> str:
    if name is None or not name.strip():
        raise InvalidArgumentError(f"{what} must be a non-empty string")
    return name


class SourceCatalog:
    """
    Overlay of user changes on top of the builtin source list.

    Listing order: visible builtins in enumeration order, then custom
    labels in the order they were added. A custom label that matches a
    builtin is listed once, at the builtin's position.
    """

    def __init__(
        self,
        records: AssetStorageInterface,
        persistence: Optional["LedgerPersistence"] = None,
        audit_logger: Optional["AuditLogger"] = None,
        builtins: Iterable[str] = BUILTIN_SOURCES,
    ):
        self._records = records
        self._persistence = persistence
        self._audit_logger = audit_logger
        self._builtins: tuple[str, ...] = tuple(builtins)
        # dict as an insertion-ordered set
        self._custom: dict[str, None] = {}
        self._hidden: set[str] = set()
        self._renamed_from: dict[str, str] = {}

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def load_state(self, state: SourceCatalogState) -> None:
        self._custom = dict.fromkeys(state.custom)
        self._hidden = set(state.hidden)
        self._renamed_from = {
            name: origin
            for name, origin in state.renamed_from.items()
            if name in self._custom
        }

    def snapshot(self) -> SourceCatalogState:
        return SourceCatalogState(
            custom=list(self._custom),
            hidden=sorted(self._hidden),
            renamed_from=dict(self._renamed_from),
        )

    def _batch(self):
        if self._persistence:
            return self._persistence.batch()
        return nullcontext()

    async def _flush(self) -> None:
        if self._persistence:
            await self._persistence.flush()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def builtins(self) -> tuple[str, ...]:
        return self._builtins

    def is_builtin(self, name: str) -> bool:
        return name in self._builtins

    def _is_visible_builtin(self, name: str) -> bool:
        return name in self._builtins and name not in self._hidden

    def list_sources(self) -> list[str]:
        """Currently visible source labels."""
        visible = [name for name in self._builtins if name not in self._hidden]
        visible.extend(self._custom)
        return list(dict.fromkeys(visible))

    def source_origin(self, name: str) -> Optional[str]:
        """The builtin a label descends from, if any."""
        if name in self._renamed_from:
            return self._renamed_from[name]
        if name in self._builtins:
            return name
        return None

    def source_color(self, name: str) -> str:
        origin = self.source_origin(name)
        if origin is None:
            return DEFAULT_SOURCE_COLOR
        return SOURCE_COLORS.get(origin, DEFAULT_SOURCE_COLOR)

    async def source_in_use(self, name: str) -> bool:
        return any(asset.source == name for asset in await self._records.get_all_assets())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_source(self, name: str) -> SourceName:
        """
        Add a custom label.

        Adding a label that is already present changes nothing. No check
        is made against visible builtins; that's up to the caller.
        """
        _require_name(name)

        if name not in self._custom:
            self._custom[name] = None
            if self._audit_logger:
                await self._audit_logger.log_source_added(name)
            await self._flush()

        return SourceName(name=name)

    async def rename_source(self, old_name: str, new_name: str) -> SourceName:
        """
        Rename a label and move every record using it to the new name.

        - visible builtin: hide it, add the new name as custom
        - custom: replace it in place
        - unknown: the new name is simply added

        The catalog change and all record updates are written by one flush.
        """
        _require_name(old_name, "Old source name")
        _require_name(new_name, "New source name")

        async with self._batch():
            if self._is_visible_builtin(old_name):
                provenance = "builtin"
                self._hidden.add(old_name)
                self._custom.pop(old_name, None)
                self._custom[new_name] = None
                if new_name != old_name:
                    self._renamed_from[new_name] = old_name
            elif old_name in self._custom:
                provenance = "custom"
                origin = self._renamed_from.pop(old_name, None)
                self._custom = dict.fromkeys(
                    new_name if name == old_name else name
                    for name in self._custom
                )
                if origin is not None and origin != new_name:
                    self._renamed_from[new_name] = origin
            else:
                provenance = "unknown"
                self._custom[new_name] = None

            cascaded = 0
            if new_name != old_name:
                for asset in await self._records.get_all_assets():
                    if asset.source == old_name:
                        await self._records.update_asset(asset.id, AssetUpdate(source=new_name))
                        cascaded += 1

            logger.info(
                "source_renamed",
                old_name=old_name,
                new_name=new_name,
                provenance=provenance,
                records_updated=cascaded,
            )
            if self._audit_logger:
                await self._audit_logger.log_source_renamed(
                    old_name=old_name,
                    new_name=new_name,
                    provenance=provenance,
                    cascaded=cascaded,
                )
            await self._flush()

        return SourceName(name=new_name)

    async def delete_source(self, name: str) -> bool:
        """
        Delete a label if no record uses it.

        A custom label is removed; a visible builtin is hidden. A name
        present in both tiers is removed from both, so it leaves the
        visible list.

        Returns:
            False if the label is in use or unknown, True otherwise
        """
        _require_name(name)

        using = [asset for asset in await self._records.get_all_assets() if asset.source == name]
        if using:
            logger.info("source_delete_refused", name=name, reason="in_use", records_using=len(using))
            if self._audit_logger:
                await self._audit_logger.log_source_delete_refused(name, "in_use", len(using))
            return False

        in_custom = name in self._custom
        visible_builtin = self._is_visible_builtin(name)
        if not in_custom and not visible_builtin:
            if self._audit_logger:
                await self._audit_logger.log_source_delete_refused(name, "unknown")
            return False

        if in_custom:
            del self._custom[name]
            self._renamed_from.pop(name, None)
        if visible_builtin:
            self._hidden.add(name)

        provenance = "builtin" if visible_builtin else "custom"
        if self._audit_logger:
            await self._audit_logger.log_source_deleted(name, provenance)
        await self._flush()
        return True
