"""
Tests for the console digest printed by scripts/monitor_posts.py.
"""

import pytest

from scripts.monitor_posts import render_report

pytestmark = pytest.mark.anyio


async def test_render_report_groups_by_platform(services, make_product, make_listing):
    product = await make_product("Etsy Bundle")
    listing = await make_listing(product["id"], platform="pinterest", url="https://pin.it/abc")
    await services.lifecycle.record_sale(listing["id"], 9)
    await make_listing(product["id"], platform="tiktok", status="failed")

    report = (await services.facade.posting_activity_report(10)).data
    text = render_report(report)

    assert "=== RECENT POSTS (last 10) ===" in text
    assert "📌 PINTEREST (1 posts)" in text
    assert "📝 OTHER (1 posts)" in text
    assert "url=https://pin.it/abc" in text
    assert "Total posts: 2" in text
    assert "Revenue:     $9" in text


async def test_render_report_empty():
    text = render_report({
        "limit": 20,
        "platforms": {},
        "summary": {"total_posts": 0},
    })
    assert "No posts yet." in text
