#!/usr/bin/env python3
"""
Record a manually posted campaign for a product.

Run from backend directory:
  python scripts/log_campaign.py PRODUCT_ID --results results.json

results.json maps each channel to its outcome, e.g.
  {"reddit": {"success": true, "manual": true, "subreddit": "entrepreneur",
              "url": "https://reddit.com/r/entrepreneur"},
   "email": {"success": true, "manual": true, "recipients": 10}}

Channels default to the keys of the results file; pass --channels to list
channels that produced no result.
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure backend root is on path
backend_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_root))

from ledger.config import get_settings
from ledger.database import create_engine
from ledger.errors import LedgerError
from ledger.services.campaign_service import CampaignService
from ledger.store import RecordStore


async def log_campaign(product_id: str, channels: list[str], results: dict) -> int:
    settings = get_settings()
    engine = create_engine(settings)
    service = CampaignService(RecordStore(engine, timeout=settings.store_timeout_seconds))
    try:
        try:
            campaign = await service.log_campaign(product_id, channels, results)
        except LedgerError as e:
            print(f"Error logging campaign [{e.category}]: {e.message}")
            return 1

        print("\n=== CAMPAIGN LOGGED ===")
        print(f"  id={campaign['id']}")
        print(f"  created_at={campaign['created_at']}")
        print(f"  channels={', '.join(campaign['channels_used'])}")
        for name, outcome in campaign["results"].items():
            state = "ok" if outcome.get("success") else "failed"
            print(f"    {name}: {state}{' (manual)' if outcome.get('manual') else ''}")
        return 0
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Log a multi-channel campaign")
    parser.add_argument("product_id", help="Product UUID")
    parser.add_argument("--results", type=Path, help="JSON file of per-channel outcomes")
    parser.add_argument("--channels", nargs="*", default=None, help="Channels used (default: result keys)")
    args = parser.parse_args()

    results = json.loads(args.results.read_text()) if args.results else {}
    channels = args.channels or list(results)

    logging.basicConfig(level=logging.WARNING)
    sys.exit(asyncio.run(log_campaign(args.product_id, channels, results)))


if __name__ == "__main__":
    main()
