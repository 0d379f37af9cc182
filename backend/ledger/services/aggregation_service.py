"""
Aggregation Service — Read-side rollups over the record store, recomputed
on every call (no caching, no background jobs).

- dashboard_snapshot: every product, newest first, with all of its listings
- public_product_feed: listed products with only their published listings
- basic_stats: listed products + completed sales
- posting_activity_report: recent listings bucketed by platform with totals
- system_stats: lifetime table counts and listing sales/revenue

A storage failure always propagates; zero rows is a valid result. The only
deliberate degradation is in the public feed, where one product's listing
fetch failing leaves that product with an empty listing set.
"""

import asyncio
import logging
from collections import defaultdict
from decimal import Decimal

from ledger.errors import ConstraintViolation, LedgerError
from ledger.models import ListingStatus, ProductStatus, TransactionStatus
from ledger.platforms import bucket_for, empty_buckets
from ledger.store import RecordStore
from ledger.utils import money

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_REPORT_LIMIT = 500
# Product ids per IN (...) query, well under the drivers' bind-parameter caps
ID_CHUNK_SIZE = 500


# ── Metric computation ────────────────────────────────────────────────

def summarize_listings(listings: list) -> dict:
    """Totals over exactly the listings given (a window, not the whole table)."""
    published = sum(1 for l in listings if l.get("status") == ListingStatus.PUBLISHED.value)
    failed = sum(1 for l in listings if l.get("status") == ListingStatus.FAILED.value)
    pending = sum(1 for l in listings if not l.get("status") or l.get("status") == ListingStatus.PENDING.value)
    total_sales = sum(int(l.get("sales") or 0) for l in listings)
    total_revenue = sum((money(l.get("revenue")) for l in listings), Decimal("0"))

    return {
        "total_posts": len(listings),
        "published": published,
        "failed": failed,
        "pending": pending,
        "total_sales": total_sales,
        "total_revenue": total_revenue.quantize(CENT),
    }


def _product_digest(product: dict | None) -> dict | None:
    if not product:
        return None
    return {
        "title": product.get("title"),
        "niche": product.get("niche"),
        "suggested_price": product.get("suggested_price"),
    }


class AggregationService:
    def __init__(self, store: RecordStore, feed_concurrency: int = 10, report_limit: int = 20):
        self.store = store
        self.feed_concurrency = feed_concurrency
        self.report_limit = report_limit

    async def dashboard_snapshot(self) -> dict:
        """Operator view: all products with every listing regardless of status."""
        products = await self.store.list("products")
        by_product = defaultdict(list)
        ids = [p["id"] for p in products]
        for start in range(0, len(ids), ID_CHUNK_SIZE):
            chunk = ids[start:start + ID_CHUNK_SIZE]
            for listing in await self.store.list("listings", {"product_id__in": chunk}):
                by_product[listing["product_id"]].append(listing)

        opportunity_count, listing_count = await asyncio.gather(
            self.store.count("opportunities"),
            self.store.count("listings"),
        )
        return {
            "products": [{**p, "listings": by_product.get(p["id"], [])} for p in products],
            "opportunity_count": opportunity_count,
            "listing_count": listing_count,
        }

    async def public_product_feed(self) -> list:
        """
        Listed products only, each with its published listings. Per-product
        listing fetches run concurrently, bounded by ``feed_concurrency``.
        """
        products = await self.store.list("products", {"status": ProductStatus.LISTED.value})
        semaphore = asyncio.Semaphore(self.feed_concurrency)

        async def attach(product: dict) -> dict:
            async with semaphore:
                try:
                    listings = await self.store.list("listings", {
                        "product_id": product["id"],
                        "status": ListingStatus.PUBLISHED.value,
                    })
                except LedgerError as exc:
                    logger.warning(f"Public feed: listings for product {product['id']} unavailable: {exc}")
                    return {**product, "listings": [], "listings_unavailable": True}
            return {**product, "listings": listings}

        return list(await asyncio.gather(*(attach(p) for p in products)))

    async def basic_stats(self) -> dict:
        """Both counts must succeed; a failed count is never reported as zero."""
        listed, completed = await asyncio.gather(
            self.store.count("products", {"status": ProductStatus.LISTED.value}),
            self.store.count("transactions", {"status": TransactionStatus.COMPLETED.value}),
        )
        return {
            "total_listed_products": listed,
            "total_completed_sales": completed,
        }

    async def posting_activity_report(self, limit: int | None = None) -> dict:
        """Recent-activity digest over the newest ``limit`` listings."""
        limit = self.report_limit if limit is None else limit
        if not isinstance(limit, int) or limit < 1 or limit > MAX_REPORT_LIMIT:
            raise ConstraintViolation(f"limit must be between 1 and {MAX_REPORT_LIMIT}")

        listings = await self.store.list("listings", limit=limit)
        product_ids = sorted({l["product_id"] for l in listings if l.get("product_id")})
        products = {}
        if product_ids:
            rows = await self.store.list("products", {"id__in": product_ids})
            products = {p["id"]: p for p in rows}

        platforms = empty_buckets()
        for listing in listings:
            item = {**listing, "product": _product_digest(products.get(listing.get("product_id")))}
            platforms[bucket_for(listing.get("platform"))].append(item)

        return {
            "platforms": platforms,
            "summary": summarize_listings(listings),
            "limit": limit,
        }

    async def system_stats(self) -> dict:
        """Lifetime counts across tables plus total listing sales and revenue."""
        opportunities, products, listings, transactions, total_sales, total_revenue = await asyncio.gather(
            self.store.count("opportunities"),
            self.store.count("products"),
            self.store.count("listings"),
            self.store.count("transactions"),
            self.store.sum("listings", "sales"),
            self.store.sum("listings", "revenue"),
        )
        return {
            "opportunities": opportunities,
            "products": products,
            "listings": listings,
            "transactions": transactions,
            "total_sales": int(total_sales or 0),
            "total_revenue": f"{money(total_revenue).quantize(CENT)}",
        }
