"""
Query Façade — The read-only surface handed to HTTP handlers and CLI tools.

Composes the aggregation and funnel services without exposing the store,
and shapes every answer as a QueryResult: either a JSON-ready payload or a
structured error carrying its failure category. A failed query is never
turned into an empty success.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ledger.config import Settings
from ledger.errors import LedgerError
from ledger.services.aggregation_service import AggregationService
from ledger.services.campaign_service import CampaignService
from ledger.services.funnel_service import LeadFunnelService
from ledger.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    data: Any = None
    error: Optional[LedgerError] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        return 200 if self.ok else self.error.status_code

    def payload(self):
        return self.data if self.ok else self.error.to_payload()

    def to_response(self) -> JSONResponse:
        return JSONResponse(content=self.payload(), status_code=self.status_code)


class QueryFacade:
    def __init__(
        self,
        store: RecordStore,
        aggregation: AggregationService,
        funnel: LeadFunnelService,
        campaigns: CampaignService,
        settings: Settings,
    ):
        self._store = store
        self._aggregation = aggregation
        self._funnel = funnel
        self._campaigns = campaigns
        self._settings = settings

    async def _wrap(self, name: str, pending: Awaitable) -> QueryResult:
        try:
            data = await pending
        except LedgerError as exc:
            logger.error(f"{name} failed [{exc.category}]: {exc.message}")
            return QueryResult(error=exc)
        return QueryResult(data=jsonable_encoder(data))

    # ── Aggregations ─────────────────────────────────────────────────

    async def dashboard_snapshot(self) -> QueryResult:
        return await self._wrap("dashboard_snapshot", self._aggregation.dashboard_snapshot())

    async def public_product_feed(self) -> QueryResult:
        return await self._wrap("public_product_feed", self._aggregation.public_product_feed())

    async def basic_stats(self) -> QueryResult:
        return await self._wrap("basic_stats", self._aggregation.basic_stats())

    async def posting_activity_report(self, limit: Optional[int] = None) -> QueryResult:
        return await self._wrap(
            "posting_activity_report", self._aggregation.posting_activity_report(limit),
        )

    async def system_stats(self) -> QueryResult:
        return await self._wrap("system_stats", self._aggregation.system_stats())

    async def funnel_summary(self, days: Optional[int] = None) -> QueryResult:
        days = self._settings.funnel_window_days if days is None else days
        return await self._wrap("funnel_summary", self._funnel.funnel_summary(days))

    async def recent_campaigns(self, limit: int = 3) -> QueryResult:
        return await self._wrap("recent_campaigns", self._campaigns.recent_campaigns(limit))

    # ── Probes ───────────────────────────────────────────────────────

    async def check_connectivity(self) -> bool:
        try:
            return await self._store.ping()
        except LedgerError as exc:
            logger.warning(f"Connectivity probe failed: {exc.message}")
            return False

    def environment_probe(self) -> dict:
        """What is configured, without revealing any secret."""
        url = self._settings.database_url
        return {
            "environment": self._settings.environment,
            "has_database_url": bool(url),
            "has_api_key": bool(self._settings.api_key),
            "database_url_prefix": (url[:20] + "...") if url else "NOT SET",
        }
