"""Read-only reporting package."""

from asset_ledger.queries.reports import AssetQueries

__all__ = ["AssetQueries"]
