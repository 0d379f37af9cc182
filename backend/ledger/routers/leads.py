"""
Leads Router — Log demo / trial / sale leads and read funnel counts.

The request body mirrors the lead-logging CLI: for sales, ``detail`` holds
the amount and ``source`` the description.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ledger.dependencies import LedgerServices, get_facade, get_services
from ledger.facade import QueryFacade

router = APIRouter()


class RecordLeadRequest(BaseModel):
    type: str
    detail: Optional[str] = None
    source: Optional[str] = None


@router.post("", status_code=201)
async def record_lead(req: RecordLeadRequest, services: LedgerServices = Depends(get_services)):
    return await services.funnel.record_lead(req.type, req.detail, req.source)


@router.get("/funnel")
async def funnel(
    days: Optional[int] = Query(None, ge=0, le=365),
    facade: QueryFacade = Depends(get_facade),
):
    """Lead counts per type over the last ``days`` days (default from settings)."""
    return (await facade.funnel_summary(days)).to_response()
