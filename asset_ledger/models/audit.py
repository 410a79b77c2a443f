"""
Audit Models for Asset Ledger

Every mutation of the store is logged for audit purposes.
This provides:
1. Traceability of every record and source change
2. Debugging information when a flush fails
3. A way to reconstruct how a source label came to be

DESIGN DECISION: Events are written once and never edited. A rename is
recorded as its own event rather than by rewriting earlier ones.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Asset records
    ASSET_CREATED = "asset_created"
    ASSET_UPDATED = "asset_updated"
    ASSET_DELETED = "asset_deleted"

    # Source catalog
    SOURCE_ADDED = "source_added"
    SOURCE_RENAMED = "source_renamed"
    SOURCE_DELETED = "source_deleted"
    SOURCE_DELETE_REFUSED = "source_delete_refused"

    # Persistence
    STATE_LOADED = "state_loaded"
    STATE_SEEDED = "state_seeded"
    PERSISTENCE_FAILED = "persistence_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every store mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Subject of the event
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('asset', 'source', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Asset id or source label this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Flat, JSON-safe view passed as structlog keyword arguments.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_json_line(self) -> str:
        """One line of the JSON-lines audit file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Factories for the events the ledger emits.

    Usage:
        event = AuditEventBuilder.asset_created(asset_id, source, amount)
        event = AuditEventBuilder.source_renamed("Cash", "Wallet", 3)
    """

    @staticmethod
    def asset_created(asset_id: int, source: str, amount: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_CREATED,
            entity_type="asset",
            entity_id=str(asset_id),
            description=f"Asset {asset_id} created under {source}",
            details={"source": source, "amount": amount},
        )

    @staticmethod
    def asset_updated(asset_id: int, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_UPDATED,
            entity_type="asset",
            entity_id=str(asset_id),
            description=f"Asset {asset_id} updated",
            details={"fields": fields},
        )

    @staticmethod
    def asset_deleted(asset_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_DELETED,
            entity_type="asset",
            entity_id=str(asset_id),
            description=f"Asset {asset_id} deleted",
        )

    @staticmethod
    def source_added(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_ADDED,
            entity_type="source",
            entity_id=name,
            description=f"Source added: {name}",
        )

    @staticmethod
    def source_renamed(
        old_name: str,
        new_name: str,
        provenance: str,
        cascaded: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_RENAMED,
            entity_type="source",
            entity_id=new_name,
            description=f"Source renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "provenance": provenance,
                "records_updated": cascaded,
            },
        )

    @staticmethod
    def source_deleted(name: str, provenance: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_DELETED,
            entity_type="source",
            entity_id=name,
            description=f"Source deleted: {name}",
            details={"provenance": provenance},
        )

    @staticmethod
    def source_delete_refused(name: str, reason: str, in_use: int = 0) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_DELETE_REFUSED,
            severity=AuditSeverity.WARNING,
            entity_type="source",
            entity_id=name,
            description=f"Source not deleted: {name} ({reason})",
            details={"reason": reason, "records_using": in_use},
        )

    @staticmethod
    def state_loaded(asset_count: int, next_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            entity_type="ledger",
            description=f"Ledger loaded with {asset_count} assets",
            details={"asset_count": asset_count, "next_id": next_id},
        )

    @staticmethod
    def state_seeded(asset_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SEEDED,
            entity_type="ledger",
            description=f"Empty ledger seeded with {asset_count} sample assets",
            details={"asset_count": asset_count},
        )

    @staticmethod
    def persistence_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description="Ledger flush failed; in-memory state kept",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            details={"error_type": error_type, **(details or {})},
            error_message=error_message,
        )
