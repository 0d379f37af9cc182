"""
Products Router — Create products and move them between draft, listed and
retired.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ledger.dependencies import LedgerServices, get_services

router = APIRouter()


class CreateProductRequest(BaseModel):
    title: str
    niche: Optional[str] = None
    suggested_price: Optional[Decimal] = None


class ProductStatusRequest(BaseModel):
    status: str


@router.get("")
async def list_products(
    status: Optional[str] = None,
    niche: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    services: LedgerServices = Depends(get_services),
):
    return await services.catalog.list_products(status=status, niche=niche, limit=limit)


@router.get("/{product_id}")
async def get_product(product_id: str, services: LedgerServices = Depends(get_services)):
    return await services.catalog.get_product(product_id)


@router.post("", status_code=201)
async def create_product(req: CreateProductRequest, services: LedgerServices = Depends(get_services)):
    return await services.catalog.create_product(req.title, req.niche, req.suggested_price)


@router.patch("/{product_id}/status")
async def set_product_status(
    product_id: str,
    req: ProductStatusRequest,
    services: LedgerServices = Depends(get_services),
):
    return await services.catalog.set_product_status(product_id, req.status)
