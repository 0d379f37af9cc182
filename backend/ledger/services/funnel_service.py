"""
Lead Funnel Service — Records demo / trial / sale lead events and derives
"last N days" funnel counts.

Callers use a positional convention inherited from the lead-logging tools:
``record_lead(type, detail, source)``. For sales, ``detail`` carries the
amount and ``source`` the human-readable description. Internally each call
is turned into an explicit variant (DemoLead / TrialLead / SaleLead) so
validation and storage branch on the tag, not on field reuse.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel

from ledger.errors import InvalidAmount, InvalidLeadType, MissingDetail
from ledger.models import LeadType
from ledger.store import RecordStore
from ledger.utils import parse_amount, utcnow

logger = logging.getLogger(__name__)

LEAD_TYPES = tuple(t.value for t in LeadType)
DEFAULT_SOURCE = "unknown"
DEFAULT_SALE_DESCRIPTION = "Sale"


class _EngagementLead(BaseModel):
    detail: str
    source: str = DEFAULT_SOURCE

    def to_record(self) -> dict:
        return {"type": self.type, "detail": self.detail, "source": self.source}


class DemoLead(_EngagementLead):
    type: Literal["demo"] = "demo"


class TrialLead(_EngagementLead):
    type: Literal["trial"] = "trial"


class SaleLead(BaseModel):
    type: Literal["sale"] = "sale"
    amount: Decimal
    description: str
    # Raw inputs are kept so stored rows look the same across lead types
    detail: str
    source: str = DEFAULT_SOURCE

    def to_record(self) -> dict:
        return {
            "type": self.type,
            "detail": self.detail,
            "source": self.source,
            "amount": self.amount,
            "description": self.description,
        }


LeadVariant = Union[DemoLead, TrialLead, SaleLead]


def build_lead(lead_type: str, detail: Optional[str], source: Optional[str] = None) -> LeadVariant:
    """Validate raw lead arguments and return the tagged variant."""
    kind = (lead_type or "").strip().lower()
    if kind not in LEAD_TYPES:
        raise InvalidLeadType(f"Lead type must be one of {', '.join(LEAD_TYPES)}, got {lead_type!r}")
    if detail is None or not str(detail).strip():
        raise MissingDetail(f"A detail is required for {kind} leads")
    detail = str(detail).strip()
    source = source.strip() if source and source.strip() else None

    if kind == LeadType.SALE.value:
        amount = parse_amount(detail, "Sale detail")
        return SaleLead(
            amount=amount,
            description=source or DEFAULT_SALE_DESCRIPTION,
            detail=detail,
            source=source or DEFAULT_SOURCE,
        )
    if kind == LeadType.TRIAL.value:
        return TrialLead(detail=detail, source=source or DEFAULT_SOURCE)
    return DemoLead(detail=detail, source=source or DEFAULT_SOURCE)


class LeadFunnelService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def record_lead(self, lead_type: str, detail: Optional[str], source: Optional[str] = None) -> dict:
        variant = build_lead(lead_type, detail, source)
        lead = await self.store.insert("leads", variant.to_record())
        logger.info(f"Lead {lead['id']} recorded: {lead['type']} from {lead['source']}")
        return lead

    async def funding_window_counts(self, window: timedelta, now: Optional[datetime] = None) -> dict:
        """Lead counts per type for ``[now - window, now]``; every type is present."""
        if window < timedelta(0):
            raise InvalidAmount("window duration must not be negative")
        now = now or utcnow()
        grouped = await self.store.count_by(
            "leads", "type", {"created_at__gte": now - window, "created_at__lte": now},
        )
        counts = {t: 0 for t in LEAD_TYPES}
        for lead_type, n in grouped.items():
            counts[lead_type] = counts.get(lead_type, 0) + n
        return counts

    async def funnel_summary(self, days: int = 7) -> dict:
        now = utcnow()
        window = timedelta(days=days)
        counts = await self.funding_window_counts(window, now=now)
        sale_amount = await self.store.sum(
            "leads", "amount",
            {"type": LeadType.SALE.value, "created_at__gte": now - window, "created_at__lte": now},
        )
        return {
            "window_days": days,
            "counts": counts,
            "total_leads": sum(counts.values()),
            "total_sale_amount": Decimal(str(sale_amount or 0)),
        }
