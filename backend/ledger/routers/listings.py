"""
Listings Router — Publishing workers report listing outcomes here:
create (pending), published, failed, and sales on published listings.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ledger.dependencies import LedgerServices, get_services

router = APIRouter()


class CreateListingRequest(BaseModel):
    product_id: str
    platform: str
    url: Optional[str] = None


class PublishedRequest(BaseModel):
    url: Optional[str] = None


class FailedRequest(BaseModel):
    reason: Optional[str] = None


class SaleRequest(BaseModel):
    amount: Decimal


@router.get("")
async def list_listings(
    status: Optional[str] = None,
    platform: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    services: LedgerServices = Depends(get_services),
):
    return await services.lifecycle.list_listings(status=status, platform=platform, limit=limit)


@router.get("/{listing_id}")
async def get_listing(listing_id: str, services: LedgerServices = Depends(get_services)):
    return await services.lifecycle.get_listing(listing_id)


@router.post("", status_code=201)
async def create_listing(req: CreateListingRequest, services: LedgerServices = Depends(get_services)):
    return await services.lifecycle.create_listing(req.product_id, req.platform, req.url)


@router.post("/{listing_id}/published")
async def mark_published(
    listing_id: str,
    req: PublishedRequest,
    services: LedgerServices = Depends(get_services),
):
    return await services.lifecycle.mark_published(listing_id, req.url)


@router.post("/{listing_id}/failed")
async def mark_failed(
    listing_id: str,
    req: FailedRequest,
    services: LedgerServices = Depends(get_services),
):
    return await services.lifecycle.mark_failed(listing_id, req.reason)


@router.post("/{listing_id}/sales")
async def record_sale(
    listing_id: str,
    req: SaleRequest,
    services: LedgerServices = Depends(get_services),
):
    return await services.lifecycle.record_sale(listing_id, req.amount)
