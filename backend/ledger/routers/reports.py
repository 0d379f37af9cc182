"""
Reports Router — Dashboard snapshot, public product feed, headline stats
and the recent posting-activity digest. Read-only; every response is the
façade payload or a structured error with the category's status code.

`router` carries the public storefront reads; `operator_router` carries
the internal rollups and is mounted behind the API key.
"""

from fastapi import APIRouter, Depends, Query

from ledger.dependencies import get_facade
from ledger.facade import QueryFacade

router = APIRouter()
operator_router = APIRouter()


@router.get("/products/public")
async def public_products(facade: QueryFacade = Depends(get_facade)):
    """Listed products with their published listings only."""
    return (await facade.public_product_feed()).to_response()


@router.get("/stats")
async def stats(facade: QueryFacade = Depends(get_facade)):
    return (await facade.basic_stats()).to_response()


@operator_router.get("/dashboard")
async def dashboard(facade: QueryFacade = Depends(get_facade)):
    """Every product (newest first) with all of its listings, plus headline counts."""
    return (await facade.dashboard_snapshot()).to_response()


@operator_router.get("/stats/system")
async def system_stats(facade: QueryFacade = Depends(get_facade)):
    return (await facade.system_stats()).to_response()


@operator_router.get("/posts-tracking")
async def posts_tracking(
    limit: int = Query(20, ge=1, le=500),
    facade: QueryFacade = Depends(get_facade),
):
    """Most recent listings grouped by platform, with window totals."""
    return (await facade.posting_activity_report(limit)).to_response()
