"""Source catalog package."""

from asset_ledger.services.catalog.source_catalog import SourceCatalog

__all__ = ["SourceCatalog"]
