"""
Service wiring. One RecordStore (and so one engine) is built at startup and
shared by reference with every service; routers reach it through FastAPI
dependencies on ``app.state``.
"""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from ledger.config import Settings
from ledger.errors import StorageUnavailable
from ledger.facade import QueryFacade
from ledger.services.aggregation_service import AggregationService
from ledger.services.campaign_service import CampaignService
from ledger.services.catalog_service import CatalogService
from ledger.services.funnel_service import LeadFunnelService
from ledger.services.lifecycle_service import ListingLifecycleService
from ledger.store import RecordStore


@dataclass
class LedgerServices:
    store: RecordStore
    catalog: CatalogService
    lifecycle: ListingLifecycleService
    funnel: LeadFunnelService
    campaigns: CampaignService
    aggregation: AggregationService
    facade: QueryFacade


def build_services(engine: AsyncEngine, settings: Settings) -> LedgerServices:
    store = RecordStore(engine, timeout=settings.store_timeout_seconds)
    funnel = LeadFunnelService(store)
    campaigns = CampaignService(store)
    aggregation = AggregationService(
        store,
        feed_concurrency=settings.feed_concurrency,
        report_limit=settings.activity_report_limit,
    )
    return LedgerServices(
        store=store,
        catalog=CatalogService(store),
        lifecycle=ListingLifecycleService(store),
        funnel=funnel,
        campaigns=campaigns,
        aggregation=aggregation,
        facade=QueryFacade(store, aggregation, funnel, campaigns, settings),
    )


def get_services(request: Request) -> LedgerServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise StorageUnavailable("Ledger services are not initialised")
    return services


def get_facade(services: LedgerServices = Depends(get_services)) -> QueryFacade:
    return services.facade
