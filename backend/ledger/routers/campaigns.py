"""
Campaigns Router — Log a multi-channel distribution attempt and list the
most recent ones.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ledger.dependencies import LedgerServices, get_facade, get_services
from ledger.facade import QueryFacade

router = APIRouter()


class LogCampaignRequest(BaseModel):
    product_id: str
    channels_used: list[str]
    results: Optional[dict] = None


@router.post("", status_code=201)
async def log_campaign(req: LogCampaignRequest, services: LedgerServices = Depends(get_services)):
    return await services.campaigns.log_campaign(req.product_id, req.channels_used, req.results)


@router.get("/recent")
async def recent_campaigns(
    limit: int = Query(3, ge=1, le=100),
    facade: QueryFacade = Depends(get_facade),
):
    return (await facade.recent_campaigns(limit)).to_response()
