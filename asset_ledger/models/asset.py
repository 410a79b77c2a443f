"""
Core Data Models for Asset Ledger

These models define the schemas for all data flowing through the store.
They are designed to:
1. Enforce type safety at runtime
2. Be serializable for the persisted ledger document
3. Keep caller input separate from store-assigned fields

DESIGN DECISION: `id` and `updated_at` exist only on `Asset`.
Input models (`AssetCreate`, `AssetUpdate`) cannot carry them,
so callers can never assign identity or timestamps.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


# =============================================================================
# BUILTIN SOURCES - Fixed enumeration shipped with the system
# =============================================================================

class BuiltinSource(str, Enum):
    """
    Builtin asset sources.

    These can be hidden or renamed through the source catalog,
    but never removed from this enumeration.
    """
    CASH = "Cash"
    SAVINGS_ACCOUNT = "Savings Account"
    INVESTMENT_FUND = "Investment Fund"
    DIGITAL_WALLET = "Digital Wallet"
    STOCK_PORTFOLIO = "Stock Portfolio"
    REAL_ESTATE = "Real Estate"
    VEHICLE = "Vehicle"


BUILTIN_SOURCES: tuple[str, ...] = tuple(source.value for source in BuiltinSource)

SOURCE_COLORS: dict[str, str] = {
    BuiltinSource.CASH.value: "#22c55e",
    BuiltinSource.SAVINGS_ACCOUNT.value: "#3b82f6",
    BuiltinSource.INVESTMENT_FUND.value: "#f59e0b",
    BuiltinSource.DIGITAL_WALLET.value: "#8b5cf6",
    BuiltinSource.STOCK_PORTFOLIO.value: "#ec4899",
    BuiltinSource.REAL_ESTATE.value: "#14b8a6",
    BuiltinSource.VEHICLE.value: "#f43f5e",
}

DEFAULT_SOURCE_COLOR = "#94a3b8"


# =============================================================================
# ASSET RECORDS
# =============================================================================

class AssetCreate(BaseModel):
    """
    Caller input for a new asset.

    Validation of business rules (non-empty source, integer amount)
    belongs to the caller; the model only fixes the shape. Labels are
    kept exactly as given, since the catalog matches them exactly.
    """

    source: str = Field(
        ...,
        description="Source label (soft reference into the source catalog)"
    )
    amount: int = Field(
        ...,
        description="Amount in the smallest currency unit"
    )
    month: datetime = Field(
        ...,
        description="Reporting period this record belongs to"
    )
    description: Optional[str] = Field(
        default=None,
        description="Free-form note"
    )


class AssetUpdate(BaseModel):
    """
    Partial update for an existing asset.

    Only fields explicitly supplied by the caller are merged,
    so `description=None` clears the note while an omitted
    description leaves it untouched.
    """
    model_config = ConfigDict(extra="ignore")

    source: Optional[str] = None
    amount: Optional[int] = None
    month: Optional[datetime] = None
    description: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


class Asset(BaseModel):
    """
    A stored asset record.

    CRITICAL: `id` and `updated_at` are assigned by the store only.
    Records are frozen; the store replaces them on update.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        ge=1,
        description="Store-assigned identifier, immutable"
    )
    source: str = Field(
        ...,
        min_length=1,
        description="Source label"
    )
    amount: int = Field(
        ...,
        description="Amount in the smallest currency unit"
    )
    month: datetime = Field(
        ...,
        description="Reporting period"
    )
    description: Optional[str] = None
    updated_at: datetime = Field(
        ...,
        description="Time of the last store-side mutation"
    )

    @property
    def month_key(self) -> str:
        """Reporting period as YYYY-MM."""
        return self.month.strftime("%Y-%m")


# =============================================================================
# SOURCE CATALOG
# =============================================================================

class SourceName(BaseModel):
    """Result of adding or renaming a source."""

    name: str


class SourceCatalogState(BaseModel):
    """
    Backing sets of the source catalog.

    visible = (builtins - hidden) + custom, deduplicated.
    """

    custom: list[str] = Field(
        default_factory=list,
        description="User labels in insertion order (additions and rename targets)"
    )
    hidden: list[str] = Field(
        default_factory=list,
        description="Builtin labels masked out of the visible set"
    )
    renamed_from: dict[str, str] = Field(
        default_factory=dict,
        description="Custom label -> builtin label it replaced"
    )


class LedgerState(BaseModel):
    """
    The persisted ledger document.

    One document holds everything; it is rewritten on every flush.
    """

    assets: list[Asset] = Field(default_factory=list)
    next_id: int = Field(
        default=1,
        ge=1,
        description="Next identifier to assign"
    )
    sources: SourceCatalogState = Field(default_factory=SourceCatalogState)


# =============================================================================
# READ-ONLY PROJECTIONS
# =============================================================================

class SourceSummary(BaseModel):
    """
    Aggregate of all records sharing one source.

    This is a projection, never a record: it has no id and
    can not be passed back into the mutation API.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    total_amount: int
    count: int = Field(ge=1)
    latest_update: datetime


class SourceShare(BaseModel):
    """One slice of the distribution for a reporting month."""
    model_config = ConfigDict(frozen=True)

    source: str
    amount: int
    percentage: float = Field(
        ...,
        description="Share of the month total, 0-100"
    )
    color: str


class MonthOverview(BaseModel):
    """Headline figures for one reporting month."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(
        ...,
        description="Reporting month as YYYY-MM"
    )
    total_amount: int
    asset_count: int = Field(..., ge=0)
    source_count: int = Field(
        ...,
        ge=0,
        description="Distinct source labels used in the month"
    )
    last_updated: Optional[Asset] = Field(
        default=None,
        description="Most recently updated asset of the month"
    )
