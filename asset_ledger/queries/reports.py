"""
Read-Only Reports

DESIGN DECISION: Grouped views (totals per source, monthly distribution,
per-month totals and overviews, recent activity) are computed on demand
from the record store.
They are projections with their own types, never synthetic records,
so nothing here can be routed back into the mutation API.
"""

from typing import Optional

from asset_ledger.models.asset import (
    DEFAULT_SOURCE_COLOR,
    SOURCE_COLORS,
    Asset,
    MonthOverview,
    SourceShare,
    SourceSummary,
)
from asset_ledger.services.catalog import SourceCatalog
from asset_ledger.services.storage import AssetStorageInterface


class AssetQueries:
    """
    Aggregations over stored assets.

    GUARANTEES:
    - Only returns real data from storage
    - Empty results (not errors) when nothing matches
    """

    def __init__(
        self,
        storage: AssetStorageInterface,
        catalog: Optional[SourceCatalog] = None,
        recent_limit: int = 4,
    ):
        self._storage = storage
        self._catalog = catalog
        self._recent_limit = recent_limit

    def _color(self, source: str) -> str:
        if self._catalog is not None:
            return self._catalog.source_color(source)
        return SOURCE_COLORS.get(source, DEFAULT_SOURCE_COLOR)

    async def _assets_for_month(self, month: Optional[str]) -> list[Asset]:
        assets = await self._storage.get_all_assets()
        if month is None:
            return assets
        return [asset for asset in assets if asset.month_key == month]

    async def summarize_by_source(self, month: Optional[str] = None) -> list[SourceSummary]:
        """
        One summary per source label, largest total first.

        Ties are broken by source name so the order is stable.
        """
        groups: dict[str, list[Asset]] = {}
        for asset in await self._assets_for_month(month):
            groups.setdefault(asset.source, []).append(asset)

        summaries = [
            SourceSummary(
                source=source,
                total_amount=sum(asset.amount for asset in assets),
                count=len(assets),
                latest_update=max(asset.updated_at for asset in assets),
            )
            for source, assets in groups.items()
        ]
        summaries.sort(key=lambda s: (-s.total_amount, s.source))
        return summaries

    async def available_months(self) -> list[str]:
        """Reporting months as YYYY-MM, newest first."""
        months = {asset.month_key for asset in await self._storage.get_all_assets()}
        return sorted(months, reverse=True)

    async def total_amount(self, month: Optional[str] = None) -> int:
        return sum(asset.amount for asset in await self._assets_for_month(month))

    async def monthly_totals(self) -> list[tuple[str, int]]:
        """Total per reporting month, oldest first."""
        totals: dict[str, int] = {}
        for asset in await self._storage.get_all_assets():
            totals[asset.month_key] = totals.get(asset.month_key, 0) + asset.amount
        return sorted(totals.items())

    async def month_overview(self, month: Optional[str] = None) -> Optional[MonthOverview]:
        """
        Headline figures for one month (latest by default).

        Returns None only when no month is given and the store is empty.
        A month without records gets a zeroed overview.
        """
        if month is None:
            months = await self.available_months()
            if not months:
                return None
            month = months[0]

        assets = await self._assets_for_month(month)
        return MonthOverview(
            month=month,
            total_amount=sum(asset.amount for asset in assets),
            asset_count=len(assets),
            source_count=len({asset.source for asset in assets}),
            last_updated=max(assets, key=lambda asset: asset.updated_at, default=None),
        )

    async def distribution(self, month: Optional[str] = None) -> list[SourceShare]:
        """
        Share of each source in one reporting month.

        Defaults to the latest month with data.
        """
        if month is None:
            months = await self.available_months()
            if not months:
                return []
            month = months[0]

        summaries = await self.summarize_by_source(month)
        total = sum(summary.total_amount for summary in summaries)

        return [
            SourceShare(
                source=summary.source,
                amount=summary.total_amount,
                percentage=round(summary.total_amount / total * 100, 2) if total else 0.0,
                color=self._color(summary.source),
            )
            for summary in summaries
        ]

    async def recent_activity(self, limit: Optional[int] = None) -> list[Asset]:
        """Most recently updated assets first."""
        assets = sorted(
            await self._storage.get_all_assets(),
            key=lambda asset: asset.updated_at,
            reverse=True,
        )
        return assets[:self._recent_limit if limit is None else limit]
