"""
Campaign Service — Write-once summaries of a multi-channel distribution
attempt for one product (which channels were used and what each returned).
"""

import logging
from typing import Optional

from ledger.errors import ConstraintViolation, NotFound, UnknownProduct
from ledger.platforms import normalize_platform
from ledger.store import RecordStore
from ledger.utils import utcnow

logger = logging.getLogger(__name__)

# Channels that deliver messages stamp sent_at; everything else posted_at
_SENT_CHANNELS = frozenset({"email", "newsletter", "sms"})


def _normalize_results(channels: list[str], results: dict) -> dict:
    normalized = {}
    stamp = utcnow().isoformat()
    for raw_name, outcome in results.items():
        name = normalize_platform(raw_name)
        if name not in channels:
            raise ConstraintViolation(f"Result for {raw_name!r} is not in channels_used")
        if not isinstance(outcome, dict):
            raise ConstraintViolation(f"Result for {raw_name!r} must be an object")
        record = {"platform": name, "success": False, "manual": False, **outcome}
        record["success"] = bool(record["success"])
        record["manual"] = bool(record["manual"])
        time_key = "sent_at" if name in _SENT_CHANNELS else "posted_at"
        if not record.get("posted_at") and not record.get("sent_at"):
            record[time_key] = stamp
        normalized[name] = record
    return normalized


class CampaignService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def log_campaign(self, product_id, channels_used: list[str], results: Optional[dict] = None) -> dict:
        channels = [normalize_platform(c) for c in channels_used or []]
        if not channels or not all(channels):
            raise ConstraintViolation("channels_used must list at least one channel")
        normalized = _normalize_results(channels, results or {})
        try:
            product = await self.store.get("products", product_id)
        except NotFound:
            raise UnknownProduct(product_id)

        campaign = await self.store.insert("campaigns", {
            "product_id": product["id"],
            "channels_used": channels,
            "results": normalized,
        })
        logger.info(f"Campaign {campaign['id']} logged for product {product['id']}: "
                    f"{', '.join(channels)}")
        return campaign

    async def recent_campaigns(self, limit: int = 3) -> list:
        return await self.store.list("campaigns", limit=limit)
