"""
Ledger Persistence Boundary

Every mutating store operation ends with a flush that writes the
whole ledger document through a state backend.

DESIGN DECISION: A failed flush never undoes the in-memory mutation.
The failure is logged, audited and kept in `last_error`; the next
successful flush writes the complete state again, so nothing is lost
as long as the process keeps running.

Batches defer the flush until the outermost batch exits. The source
catalog uses this to commit a rename and all the record updates it
cascades into with a single write.
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Callable, Optional

import structlog

from asset_ledger.models.asset import LedgerState
from asset_ledger.services.storage.interface import (
    PersistenceError,
    StateBackendInterface,
)

if TYPE_CHECKING:
    from asset_ledger.audit import AuditLogger


logger = structlog.get_logger(__name__)


class LedgerPersistence:
    """
    Writes snapshots of the ledger through a state backend.

    The snapshot callable is bound by whoever composes the store
    and the catalog, since only it can see both.
    """

    def __init__(
        self,
        backend: StateBackendInterface,
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self._backend = backend
        self._audit_logger = audit_logger
        self._snapshot: Optional[Callable[[], LedgerState]] = None
        self._depth = 0
        self._dirty = False
        self.last_error: Optional[str] = None

    @property
    def backend(self) -> StateBackendInterface:
        return self._backend

    @property
    def in_batch(self) -> bool:
        return self._depth > 0

    def bind(self, snapshot: Callable[[], LedgerState]) -> None:
        """Set the callable that produces the document to write."""
        self._snapshot = snapshot

    async def load(self) -> Optional[LedgerState]:
        return await self._backend.load()

    async def flush(self) -> bool:
        """
        Write the current ledger state.

        Inside a batch this only marks the state dirty.

        Returns:
            False if the write failed, True otherwise
        """
        if self._depth:
            self._dirty = True
            return True
        return await self._write()

    @asynccontextmanager
    async def batch(self) -> AsyncIterator["LedgerPersistence"]:
        """Defer flushes until the outermost batch exits."""
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0 and self._dirty:
                self._dirty = False
                await self._write()

    async def _write(self) -> bool:
        if self._snapshot is None:
            return True

        state = self._snapshot()
        try:
            await self._backend.save(state)
        except PersistenceError as e:
            self.last_error = str(e)
            logger.warning(
                "ledger_flush_failed",
                error=str(e),
                asset_count=len(state.assets),
            )
            if self._audit_logger:
                await self._audit_logger.log_persistence_failed(str(e))
            return False

        self.last_error = None
        logger.debug("ledger_flushed", asset_count=len(state.assets))
        return True
