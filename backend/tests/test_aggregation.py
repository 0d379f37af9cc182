"""
Tests for the read-side rollups: dashboard, public feed, stats and the
posting-activity digest.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from ledger.errors import ConstraintViolation, StorageUnavailable
from ledger.services.aggregation_service import summarize_listings
from ledger.utils import utcnow

pytestmark = pytest.mark.anyio


# ── basic_stats ────────────────────────────────────────────────


async def test_basic_stats_on_empty_store(services):
    assert await services.aggregation.basic_stats() == {
        "total_listed_products": 0,
        "total_completed_sales": 0,
    }


async def test_basic_stats_counts(services, make_product, make_listing):
    listed = await make_product("Listed")
    await make_product("Draft", status="draft")
    listing = await make_listing(listed["id"])
    await services.lifecycle.record_sale(listing["id"], 10)
    await services.lifecycle.record_sale(listing["id"], 15)

    assert await services.aggregation.basic_stats() == {
        "total_listed_products": 1,
        "total_completed_sales": 2,
    }


async def test_basic_stats_propagates_failed_count(services):
    real_count = services.store.count

    async def flaky_count(kind, filters=None):
        if kind == "transactions":
            raise StorageUnavailable("count transactions timed out after 10s")
        return await real_count(kind, filters)

    with patch.object(services.store, "count", side_effect=flaky_count):
        with pytest.raises(StorageUnavailable):
            await services.aggregation.basic_stats()


# ── posting_activity_report ────────────────────────────────────


async def test_posting_report_buckets_and_totals(services, make_product, make_listing):
    product = await make_product("Budget Sheet", niche="finance", price="12")
    for amount in (10, 20, 30):
        listing = await make_listing(product["id"], platform="pinterest")
        await services.lifecycle.record_sale(listing["id"], amount)
    for _ in range(2):
        await make_listing(product["id"], platform="reddit", status="failed")

    report = await services.aggregation.posting_activity_report(20)

    assert len(report["platforms"]["pinterest"]) == 3
    assert len(report["platforms"]["reddit"]) == 2
    assert report["platforms"]["youtube"] == []
    summary = report["summary"]
    assert summary["total_posts"] == 5
    assert summary["published"] == 3
    assert summary["failed"] == 2
    assert summary["pending"] == 0
    assert summary["total_sales"] == 3
    assert summary["total_revenue"] == Decimal("60")

    item = report["platforms"]["pinterest"][0]
    assert item["product"]["title"] == "Budget Sheet"
    assert item["product"]["niche"] == "finance"
    assert item["product"]["suggested_price"] == Decimal("12")


async def test_posting_report_is_scoped_to_the_window(services, make_product, make_listing):
    product = await make_product()
    for _ in range(4):
        listing = await make_listing(product["id"])
        await services.lifecycle.record_sale(listing["id"], 5)

    report = await services.aggregation.posting_activity_report(2)
    assert report["summary"]["total_posts"] == 2
    assert report["summary"]["total_revenue"] == Decimal("10")
    assert report["limit"] == 2


async def test_unrecognized_platforms_go_to_other(services, make_product, make_listing):
    product = await make_product()
    await make_listing(product["id"], platform="mastodon", status="pending")

    report = await services.aggregation.posting_activity_report()
    assert len(report["platforms"]["other"]) == 1
    assert report["summary"]["pending"] == 1


async def test_payment_listings_get_their_own_bucket(services, make_product, make_listing):
    product = await make_product()
    await make_listing(product["id"], platform="Stripe", url="https://buy.stripe.com/abc")

    report = await services.aggregation.posting_activity_report()
    assert list(report["platforms"]) == [
        "pinterest", "youtube", "reddit", "facebook", "linkedin", "stripe", "other",
    ]
    assert len(report["platforms"]["stripe"]) == 1
    assert report["platforms"]["other"] == []


@pytest.mark.parametrize("limit", [0, -3, 501])
async def test_posting_report_limit_bounds(services, limit):
    with pytest.raises(ConstraintViolation):
        await services.aggregation.posting_activity_report(limit)


async def test_summarize_listings_parses_text_revenue():
    summary = summarize_listings([
        {"status": "published", "sales": 2, "revenue": "19.90"},
        {"status": None, "sales": None, "revenue": "n/a"},
    ])
    assert summary["total_revenue"] == Decimal("19.90")
    assert summary["total_sales"] == 2
    assert summary["pending"] == 1


# ── public_product_feed ────────────────────────────────────────


async def test_public_feed_filters_products_and_listings(services, make_product, make_listing):
    listed = await make_product("Listed")
    draft = await make_product("Draft", status="draft")
    retired = await make_product("Retired", status="retired")
    published = await make_listing(listed["id"], platform="youtube")
    await make_listing(listed["id"], platform="reddit", status="failed")
    await make_listing(listed["id"], platform="facebook", status="pending")
    await make_listing(draft["id"])
    await make_listing(retired["id"])

    feed = await services.aggregation.public_product_feed()

    assert [p["title"] for p in feed] == ["Listed"]
    assert [l["id"] for l in feed[0]["listings"]] == [published["id"]]


async def test_public_feed_degrades_one_product(services, make_product, make_listing):
    healthy = await make_product("Healthy")
    broken = await make_product("Broken")
    await make_listing(healthy["id"])
    await make_listing(broken["id"])

    real_list = services.store.list

    async def flaky_list(kind, filters=None, order_by=None, limit=None):
        if kind == "listings" and filters and filters.get("product_id") == broken["id"]:
            raise StorageUnavailable("list listings failed")
        return await real_list(kind, filters, order_by, limit)

    with patch.object(services.store, "list", side_effect=flaky_list):
        feed = await services.aggregation.public_product_feed()

    by_title = {p["title"]: p for p in feed}
    assert len(by_title["Healthy"]["listings"]) == 1
    assert by_title["Broken"]["listings"] == []
    assert by_title["Broken"]["listings_unavailable"] is True


async def test_public_feed_aborts_when_product_query_fails(services):
    with patch.object(services.store, "list", side_effect=StorageUnavailable("down")):
        with pytest.raises(StorageUnavailable):
            await services.aggregation.public_product_feed()


async def test_public_feed_empty_store(services):
    assert await services.aggregation.public_product_feed() == []


# ── dashboard_snapshot / system_stats ──────────────────────────


async def test_dashboard_snapshot_attaches_all_listings(services, make_product, make_listing):
    now = utcnow()
    older = await services.store.insert("products", {
        "title": "Older", "status": "listed", "created_at": now - timedelta(hours=1),
    })
    newer = await services.store.insert("products", {"title": "Newer", "status": "draft", "created_at": now})
    await make_listing(older["id"])
    await make_listing(older["id"], status="failed")
    await services.store.insert("opportunities", {"title": "AI prompt pack"})

    snapshot = await services.aggregation.dashboard_snapshot()

    assert [p["title"] for p in snapshot["products"]] == ["Newer", "Older"]
    assert snapshot["products"][0]["id"] == newer["id"]
    assert snapshot["products"][0]["listings"] == []
    assert len(snapshot["products"][1]["listings"]) == 2
    assert snapshot["opportunity_count"] == 1
    assert snapshot["listing_count"] == 2


async def test_dashboard_snapshot_fetches_listings_in_chunks(services, make_listing):
    now = utcnow()
    products = []
    for age in range(5):
        products.append(await services.store.insert("products", {
            "title": f"Product {age}", "status": "listed", "created_at": now - timedelta(minutes=age),
        }))
    for product in products:
        await make_listing(product["id"])

    with patch("ledger.services.aggregation_service.ID_CHUNK_SIZE", 2):
        with patch.object(services.store, "list", wraps=services.store.list) as listed:
            snapshot = await services.aggregation.dashboard_snapshot()

    listing_queries = [c for c in listed.call_args_list if c.args[0] == "listings"]
    assert len(listing_queries) == 3
    assert all(len(c.args[1]["product_id__in"]) <= 2 for c in listing_queries)
    assert [p["id"] for p in snapshot["products"]] == [p["id"] for p in products]
    assert all(len(p["listings"]) == 1 for p in snapshot["products"])


async def test_system_stats(services, make_product, make_listing):
    product = await make_product()
    listing = await make_listing(product["id"])
    await services.lifecycle.record_sale(listing["id"], "7.25")

    stats = await services.aggregation.system_stats()
    assert stats == {
        "opportunities": 0,
        "products": 1,
        "listings": 1,
        "transactions": 1,
        "total_sales": 1,
        "total_revenue": "7.25",
    }
