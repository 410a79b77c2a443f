"""
JSON Document Storage Implementation

DESIGN DECISION: A single JSON file is used as the storage backend because:
1. Users can read and back up their data with any text editor
2. No database setup required
3. The whole ledger is small enough to rewrite on every change

TRADEOFFS:
- Full rewrite per mutation (fine for personal use)
- No multi-process safety (one process owns the file)

Writes go to a sibling temp file first and are then moved over the
document, so a crash mid-write leaves the previous version intact.
"""

import os
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from asset_ledger.models.asset import LedgerState
from asset_ledger.models.audit import AuditEvent
from asset_ledger.services.storage.interface import (
    AuditStorageInterface,
    PersistenceError,
    StateBackendInterface,
)


logger = structlog.get_logger(__name__)


class JsonFileStateBackend(StateBackendInterface):
    """
    Ledger document stored as one JSON file.

    A missing or empty file means "nothing saved yet".
    """

    def __init__(self, path: Path, indent: Optional[int] = 2):
        self._path = Path(path)
        self._indent = indent

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Optional[LedgerState]:
        """Read the ledger document."""
        if not self._path.exists():
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read ledger {self._path}: {e}") from e

        if not raw.strip():
            return None

        try:
            return LedgerState.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"Ledger document is corrupt: {self._path}: {e}") from e

    async def save(self, state: LedgerState) -> bool:
        """Replace the ledger document."""
        payload = state.model_dump_json(indent=self._indent)
        try:
            self._write_document(payload)
        except OSError as e:
            raise PersistenceError(f"Failed to save ledger {self._path}: {e}") from e
        return True

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_document(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)


class MemoryStateBackend(StateBackendInterface):
    """
    Ledger document kept in memory.

    The document is stored serialized, so a load after a save goes
    through the same JSON round trip as the file backend.
    """

    def __init__(self, document: Optional[str] = None):
        self._document = document
        self.save_count = 0

    @property
    def document(self) -> Optional[str]:
        return self._document

    async def load(self) -> Optional[LedgerState]:
        if self._document is None:
            return None
        try:
            return LedgerState.model_validate_json(self._document)
        except ValidationError as e:
            raise PersistenceError(f"Ledger document is corrupt: {e}") from e

    async def save(self, state: LedgerState) -> bool:
        self._document = state.model_dump_json()
        self.save_count += 1
        return True


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Audit events appended to a JSON-lines file.

    Audit events are append-only.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []

        events = []
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                for line in fh:
                    if not line.strip():
                        continue
                    try:
                        events.append(AuditEvent.model_validate_json(line))
                    except ValidationError:
                        continue  # Skip malformed lines
        except OSError as e:
            raise PersistenceError(f"Failed to read audit log {self._path}: {e}") from e
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            event
            for event in self._read_events()
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
