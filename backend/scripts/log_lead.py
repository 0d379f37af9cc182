#!/usr/bin/env python3
"""
Log a demo request, trial signup or sale, then print the last-7-days funnel.

Run from backend directory:
  python scripts/log_lead.py demo "John from Acme Corp" email
  python scripts/log_lead.py trial "Sarah from Tech Inc" linkedin
  python scripts/log_lead.py sale "500" "AI Ops Team - Monthly subscription"

For sales the second argument is the amount and the third the description.
"""

import asyncio
import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

# Ensure backend root is on path
backend_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_root))

from ledger.config import get_settings
from ledger.database import create_engine
from ledger.errors import LedgerError
from ledger.services.funnel_service import LeadFunnelService
from ledger.store import RecordStore


async def log_lead(lead_type: str, detail: str, source: str | None) -> int:
    settings = get_settings()
    engine = create_engine(settings)
    funnel = LeadFunnelService(RecordStore(engine, timeout=settings.store_timeout_seconds))
    try:
        try:
            lead = await funnel.record_lead(lead_type, detail, source)
        except LedgerError as e:
            print(f"Error logging lead [{e.category}]: {e.message}")
            return 1

        print("\n=== LEAD LOGGED ===")
        print(f"  id={lead['id']}")
        print(f"  type={lead['type']}, detail={lead['detail']}, source={lead['source']}")
        if lead.get("amount") is not None:
            print(f"  amount={lead['amount']}, description={lead['description']}")

        counts = await funnel.funding_window_counts(timedelta(days=settings.funnel_window_days))
        print(f"\n=== LAST {settings.funnel_window_days} DAYS ===")
        for name, count in counts.items():
            print(f"  {name}: {count}")
        return 0
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Log a funnel lead")
    parser.add_argument("type", help="demo, trial or sale")
    parser.add_argument("detail", help="who the lead is, or the sale amount")
    parser.add_argument("source", nargs="?", default=None, help="where it came from, or the sale description")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    sys.exit(asyncio.run(log_lead(args.type, args.detail, args.source)))


if __name__ == "__main__":
    main()
