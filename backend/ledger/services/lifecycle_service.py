"""
Listing Lifecycle Service — Creates listings and moves them through
pending → published / pending → failed, and records sales on published
listings.

Every transition is a single conditional UPDATE guarded by the expected
current status, so two racing callers can never both succeed. Re-publishing
after a failure means creating a new listing; history is append-only.
"""

import logging
from decimal import Decimal
from typing import Optional

from ledger.errors import (
    ConstraintViolation, InvalidTransition, NotFound, UnknownProduct,
)
from ledger.models import ListingStatus, TransactionStatus, TransactionType
from ledger.platforms import normalize_platform
from ledger.store import RecordStore
from ledger.utils import parse_amount, utcnow

logger = logging.getLogger(__name__)


def validate_amount(value) -> Decimal:
    """Sale amounts must fit the revenue column: non-negative, cents, in range."""
    return parse_amount(value, "Sale amount")


class ListingLifecycleService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def create_listing(self, product_id, platform: str, url: Optional[str] = None) -> dict:
        """Create a listing in ``pending`` for an existing product."""
        name = normalize_platform(platform)
        if not name:
            raise ConstraintViolation("platform is required")
        try:
            product = await self.store.get("products", product_id)
        except NotFound:
            raise UnknownProduct(product_id)

        listing = await self.store.insert("listings", {
            "product_id": product["id"],
            "platform": name,
            "status": ListingStatus.PENDING.value,
            "url": url,
            "sales": 0,
            "revenue": Decimal("0"),
        })
        logger.info(f"Listing {listing['id']} created for product {product['id']} on {name}")
        return listing

    async def get_listing(self, listing_id) -> dict:
        return await self.store.get("listings", listing_id)

    async def list_listings(
        self,
        status: Optional[str] = None,
        platform: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list:
        filters = {}
        if status:
            filters["status"] = status
        if platform:
            filters["platform"] = normalize_platform(platform)
        return await self.store.list("listings", filters, limit=limit)

    async def _transition(self, listing_id, action: str, values: dict) -> dict:
        updated = await self.store.update_where(
            "listings",
            listing_id,
            values,
            expected={"status": ListingStatus.PENDING.value},
        )
        if updated is not None:
            logger.info(f"Listing {updated['id']}: pending → {updated['status']}")
            return updated
        # Nothing matched: either the listing is gone or it already left pending
        current = await self.store.get("listings", listing_id)
        raise InvalidTransition(listing_id, current["status"], action)

    async def mark_published(self, listing_id, url: Optional[str] = None) -> dict:
        values = {"status": ListingStatus.PUBLISHED.value, "published_at": utcnow()}
        if url:
            values["url"] = url
        return await self._transition(listing_id, "publish", values)

    async def mark_failed(self, listing_id, reason: Optional[str] = None) -> dict:
        return await self._transition(listing_id, "fail", {
            "status": ListingStatus.FAILED.value,
            "failure_reason": reason,
        })

    async def record_sale(self, listing_id, sale_amount) -> dict:
        """
        Count one sale of ``sale_amount`` against a published listing.
        Sales and revenue are incremented in the database and a completed
        transaction is written in the same unit of work.
        """
        amount = validate_amount(sale_amount)
        updated = await self.store.increment(
            "listings",
            listing_id,
            {"sales": 1, "revenue": amount},
            expected={"status": ListingStatus.PUBLISHED.value},
            follow_up=("transactions", {
                "listing_id": listing_id,
                "type": TransactionType.SALE.value,
                "amount": amount,
                "status": TransactionStatus.COMPLETED.value,
            }),
        )
        if updated is not None:
            logger.info(f"Listing {updated['id']}: sale of {amount} recorded "
                        f"(sales={updated['sales']}, revenue={updated['revenue']})")
            return updated
        current = await self.store.get("listings", listing_id)
        raise InvalidTransition(listing_id, current["status"], "record a sale on")
