"""
Data Models Package

This package contains all Pydantic models used in the Asset Ledger.
All data flowing through the store must conform to these schemas.
"""

from asset_ledger.models.asset import (
    BUILTIN_SOURCES,
    DEFAULT_SOURCE_COLOR,
    SOURCE_COLORS,
    Asset,
    AssetCreate,
    AssetUpdate,
    BuiltinSource,
    LedgerState,
    MonthOverview,
    SourceCatalogState,
    SourceName,
    SourceShare,
    SourceSummary,
)
from asset_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Asset models
    "BUILTIN_SOURCES",
    "DEFAULT_SOURCE_COLOR",
    "SOURCE_COLORS",
    "Asset",
    "AssetCreate",
    "AssetUpdate",
    "BuiltinSource",
    "LedgerState",
    "MonthOverview",
    "SourceCatalogState",
    "SourceName",
    "SourceShare",
    "SourceSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
