#!/usr/bin/env python3
"""
Console digest of recent posting activity, grouped by platform.

Run from backend directory:
  python scripts/monitor_posts.py
  python scripts/monitor_posts.py --limit 50
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path

# Ensure backend root is on path
backend_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_root))

from ledger.config import get_settings
from ledger.database import create_engine
from ledger.dependencies import build_services
from ledger.platforms import platform_meta

STATUS_ICONS = {"published": "✅", "failed": "❌"}


def render_report(report: dict) -> str:
    lines = [f"=== RECENT POSTS (last {report['limit']}) ==="]
    summary = report["summary"]
    if not summary["total_posts"]:
        lines.append("  No posts yet.")
        return "\n".join(lines)

    for platform, posts in report["platforms"].items():
        if not posts:
            continue
        meta = platform_meta(platform)
        lines.append(f"\n{meta['icon']} {platform.upper()} ({len(posts)} posts)")
        for post in posts:
            title = (post.get("product") or {}).get("title") or "Unknown Product"
            status = post.get("status") or "unknown"
            lines.append(f"  {STATUS_ICONS.get(status, '⏳')} {title}")
            lines.append(f"     status={status}, posted={post['created_at']}")
            if post.get("url"):
                lines.append(f"     url={post['url']}")
            lines.append(f"     sales={post.get('sales') or 0}, revenue=${post.get('revenue') or 0}")

    lines.append("\n=== SUMMARY ===")
    lines.append(f"  Total posts: {summary['total_posts']}")
    lines.append(f"  Published:   {summary['published']}")
    lines.append(f"  Failed:      {summary['failed']}")
    lines.append(f"  Pending:     {summary['pending']}")
    lines.append(f"  Total sales: {summary['total_sales']}")
    lines.append(f"  Revenue:     ${summary['total_revenue']}")
    return "\n".join(lines)


async def main(limit: int) -> int:
    settings = get_settings()
    engine = create_engine(settings)
    services = build_services(engine, settings)
    try:
        result = await services.facade.posting_activity_report(limit)
        if not result.ok:
            payload = result.payload()
            print(f"Error monitoring posts [{payload['error']}]: {payload['message']}")
            return 1
        print(render_report(result.data))
        return 0
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show recent posting activity")
    parser.add_argument("--limit", type=int, default=get_settings().activity_report_limit)
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    sys.exit(asyncio.run(main(args.limit)))
