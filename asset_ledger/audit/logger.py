"""
Audit Logger

DESIGN DECISION: Every change to records or source labels leaves an
audit event, including refused deletes and failed flushes.

Events always go to the structured log. When an audit store is
configured they are also appended there, and a broken audit store
never breaks the mutation that produced the event.
"""

from typing import Optional

import structlog

from asset_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from asset_ledger.services.storage.interface import AuditStorageInterface


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(sort_keys=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

_LOG_METHODS = {
    AuditSeverity.CRITICAL: "critical",
    AuditSeverity.ERROR: "error",
    AuditSeverity.WARNING: "warning",
}


class AuditLogger:
    """
    Writes ledger audit events.

    `storage` is optional; without it events only reach the local log.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Emit one event locally and append it to the audit store.

        Returns:
            False only when the audit store rejected or failed the append
        """
        method = getattr(self._logger, _LOG_METHODS.get(event.severity, "info"))
        method("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
                event_type=event.event_type.value,
            )
            return False

    async def log_asset_created(self, asset_id: int, source: str, amount: int) -> None:
        await self.log(AuditEventBuilder.asset_created(asset_id, source, amount))

    async def log_asset_updated(self, asset_id: int, fields: list[str]) -> None:
        await self.log(AuditEventBuilder.asset_updated(asset_id, fields))

    async def log_asset_deleted(self, asset_id: int) -> None:
        await self.log(AuditEventBuilder.asset_deleted(asset_id))

    async def log_source_added(self, name: str) -> None:
        await self.log(AuditEventBuilder.source_added(name))

    async def log_source_renamed(
        self,
        old_name: str,
        new_name: str,
        provenance: str,
        cascaded: int,
    ) -> None:
        """Log a rename together with how many records followed it."""
        event = AuditEventBuilder.source_renamed(
            old_name=old_name,
            new_name=new_name,
            provenance=provenance,
            cascaded=cascaded,
        )
        await self.log(event)

    async def log_source_deleted(self, name: str, provenance: str) -> None:
        await self.log(AuditEventBuilder.source_deleted(name, provenance))

    async def log_source_delete_refused(
        self,
        name: str,
        reason: str,
        in_use: int = 0,
    ) -> None:
        """Log a refused source deletion (in use or unknown)."""
        await self.log(AuditEventBuilder.source_delete_refused(name, reason, in_use))

    async def log_state_loaded(self, asset_count: int, next_id: int) -> None:
        await self.log(AuditEventBuilder.state_loaded(asset_count, next_id))

    async def log_state_seeded(self, asset_count: int) -> None:
        await self.log(AuditEventBuilder.state_seeded(asset_count))

    async def log_persistence_failed(self, error_message: str) -> None:
        await self.log(AuditEventBuilder.persistence_failed(error_message))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        )
        await self.log(event)
