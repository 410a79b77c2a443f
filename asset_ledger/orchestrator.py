"""
Main Orchestrator for Asset Ledger

This module ties the components together:
1. Record store (assets)
2. Source catalog (labels, overlaid on the builtin list)
3. Persistence (one document, flushed after every mutation)
4. Reports (read-only projections)

DESIGN DECISION: There is no module-level store. An `AssetLedger` is
created once at process start, handed to whatever serves requests,
and closed at shutdown, which forces a final flush.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from asset_ledger.audit import AuditLogger
from asset_ledger.config import Settings, get_settings
from asset_ledger.models.asset import AssetCreate, BuiltinSource, LedgerState
from asset_ledger.queries import AssetQueries
from asset_ledger.services.catalog import SourceCatalog
from asset_ledger.services.storage import (
    AssetStore,
    JsonFileStateBackend,
    JsonLinesAuditStorage,
    LedgerPersistence,
    PersistenceError,
    StateBackendInterface,
)

logger = structlog.get_logger(__name__)


SAMPLE_ASSETS: list[tuple[str, int, str]] = [
    (BuiltinSource.CASH.value, 32000000, "Physical cash at home"),
    (BuiltinSource.SAVINGS_ACCOUNT.value, 45000000, "Bank savings account"),
    (BuiltinSource.INVESTMENT_FUND.value, 23500000, "Mutual fund investment"),
    (BuiltinSource.DIGITAL_WALLET.value, 12000000, "E-wallet"),
    (BuiltinSource.STOCK_PORTFOLIO.value, 8000000, "Stock investments"),
]


class AssetLedger:
    """
    The composed store.

    Usage:
        async with create_ledger() as ledger:
            asset = await ledger.records.create_asset({...})
            await ledger.sources.rename_source("Cash", "Wallet")
    """

    def __init__(
        self,
        backend: StateBackendInterface,
        audit_logger: Optional[AuditLogger] = None,
        seed_sample_assets: bool = False,
        recent_activity_limit: int = 4,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._audit_logger = audit_logger
        self._seed_sample_assets = seed_sample_assets
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.persistence = LedgerPersistence(backend, audit_logger)
        self.records = AssetStore(self.persistence, audit_logger, clock)
        self.sources = SourceCatalog(self.records, self.persistence, audit_logger)
        self.queries = AssetQueries(self.records, self.sources, recent_activity_limit)

        self.persistence.bind(self.snapshot)

    def snapshot(self) -> LedgerState:
        """The full ledger as one document."""
        assets, next_id = self.records.export_state()
        return LedgerState(
            assets=assets,
            next_id=next_id,
            sources=self.sources.snapshot(),
        )

    async def open(self) -> "AssetLedger":
        """
        Load persisted state.

        Raises:
            PersistenceError: If the stored document can't be read
        """
        try:
            state = await self.persistence.load()
        except PersistenceError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="ledger_load_failed",
                    error_message=str(e),
                )
            raise

        if state is not None:
            self.records.load_state(state.assets, state.next_id)
            self.sources.load_state(state.sources)
            if self._audit_logger:
                await self._audit_logger.log_state_loaded(
                    asset_count=len(state.assets),
                    next_id=self.records.next_id,
                )
        elif self._seed_sample_assets:
            await self._seed()

        return self

    async def _seed(self) -> None:
        month = self._clock().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        async with self.persistence.batch():
            for source, amount, description in SAMPLE_ASSETS:
                await self.records.create_asset(
                    AssetCreate(
                        source=source,
                        amount=amount,
                        month=month,
                        description=description,
                    )
                )
        if self._audit_logger:
            await self._audit_logger.log_state_seeded(len(SAMPLE_ASSETS))

    async def close(self) -> bool:
        """Final flush. Returns False if it failed."""
        return await self.persistence.flush()

    async def __aenter__(self) -> "AssetLedger":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def create_ledger(
    settings: Optional[Settings] = None,
    backend: Optional[StateBackendInterface] = None,
) -> AssetLedger:
    """
    Factory function to create the ledger from settings.

    Args:
        settings: Application settings (cached settings if None)
        backend: State backend override; a JSON file at the
                 configured path if None

    Returns:
        An unopened ledger; call `open()` or use it as an async
        context manager.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    logging.basicConfig(level="DEBUG" if app_settings.debug_mode else app_settings.log_level)

    if backend is None:
        backend = JsonFileStateBackend(
            storage_settings.data_file,
            indent=storage_settings.indent,
        )

    audit_storage = None
    if storage_settings.audit_file is not None:
        audit_storage = JsonLinesAuditStorage(storage_settings.audit_file)

    logger.info(
        "ledger_configured",
        environment=app_settings.app_environment,
        data_file=str(storage_settings.data_file),
        audit_file=str(storage_settings.audit_file) if storage_settings.audit_file else None,
    )

    return AssetLedger(
        backend=backend,
        audit_logger=AuditLogger(audit_storage),
        seed_sample_assets=app_settings.seed_sample_assets,
        recent_activity_limit=app_settings.recent_activity_limit,
    )
