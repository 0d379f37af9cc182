"""
Tests for lead recording and the time-windowed funnel counts.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from ledger.errors import ConstraintViolation, InvalidAmount, InvalidLeadType, MissingDetail
from ledger.services.funnel_service import DemoLead, SaleLead, TrialLead, build_lead
from ledger.utils import utcnow

pytestmark = pytest.mark.anyio


# ── Variant construction ───────────────────────────────────────


async def test_build_lead_returns_tagged_variants():
    assert isinstance(build_lead("demo", "booked call", "email"), DemoLead)
    assert isinstance(build_lead("TRIAL", "signed up", None), TrialLead)
    sale = build_lead("sale", "500", "AI Ops Team - Monthly subscription")
    assert isinstance(sale, SaleLead)
    assert sale.amount == Decimal("500")
    assert sale.description == "AI Ops Team - Monthly subscription"


async def test_sale_without_source_gets_default_description():
    sale = build_lead("sale", "42.50", "")
    assert sale.description == "Sale"
    assert sale.source == "unknown"


async def test_invalid_type_is_checked_before_detail():
    with pytest.raises(InvalidLeadType):
        build_lead("webinar", "", None)
    # Lead-type errors are schema-level rejections
    with pytest.raises(ConstraintViolation):
        build_lead("", "x", None)


# ── record_lead ────────────────────────────────────────────────


async def test_record_sale_lead_splits_amount_and_description(services):
    lead = await services.funnel.record_lead("sale", "500", "AI Ops Team - Monthly subscription")
    assert lead["type"] == "sale"
    assert lead["amount"] == Decimal("500")
    assert lead["description"] == "AI Ops Team - Monthly subscription"
    assert lead["detail"] == "500"


async def test_record_demo_lead_defaults_source(services):
    lead = await services.funnel.record_lead("demo", "Asked for a walkthrough")
    assert lead["source"] == "unknown"
    assert lead["amount"] is None
    assert lead["description"] is None


@pytest.mark.parametrize("detail", ["", "   ", None])
async def test_missing_detail_is_rejected_before_storage(services, detail):
    with pytest.raises(MissingDetail):
        await services.funnel.record_lead("demo", detail, "email")
    assert await services.store.count("leads") == 0


@pytest.mark.parametrize("detail", ["five hundred", "-10", "NaN", "99999999999", "0.001"])
async def test_sale_detail_must_be_a_non_negative_amount(services, detail):
    with pytest.raises(InvalidAmount):
        await services.funnel.record_lead("sale", detail, "Stripe")
    assert await services.store.count("leads") == 0


# ── Window counts ──────────────────────────────────────────────


async def test_window_counts_include_every_type(services):
    counts = await services.funnel.funding_window_counts(timedelta(days=7))
    assert counts == {"demo": 0, "trial": 0, "sale": 0}


async def test_window_counts_exclude_leads_outside_window(services):
    now = utcnow()
    await services.store.insert("leads", {
        "type": "demo", "detail": "old", "created_at": now - timedelta(days=30),
    })
    await services.store.insert("leads", {
        "type": "demo", "detail": "recent", "created_at": now - timedelta(days=1),
    })
    await services.store.insert("leads", {
        "type": "trial", "detail": "recent", "created_at": now - timedelta(hours=2),
    })

    counts = await services.funnel.funding_window_counts(timedelta(days=7), now=now)
    assert counts == {"demo": 1, "trial": 1, "sale": 0}

    wide = await services.funnel.funding_window_counts(timedelta(days=60), now=now)
    assert wide["demo"] == 2


async def test_negative_window_is_rejected(services):
    with pytest.raises(InvalidAmount):
        await services.funnel.funding_window_counts(timedelta(days=-1))


async def test_funnel_summary_totals(services):
    await services.funnel.record_lead("demo", "call", "linkedin")
    await services.funnel.record_lead("trial", "signup", "site")
    await services.funnel.record_lead("sale", "120", "Team plan")
    await services.funnel.record_lead("sale", "80.50", "Solo plan")

    summary = await services.funnel.funnel_summary(days=7)
    assert summary["window_days"] == 7
    assert summary["counts"] == {"demo": 1, "trial": 1, "sale": 2}
    assert summary["total_leads"] == 4
    assert summary["total_sale_amount"] == Decimal("200.50")
