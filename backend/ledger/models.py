"""
Publication Ledger — Database Models
Products, their per-platform listings, lead funnel events and campaign
summaries, plus the transactions and opportunities the dashboards count.
"""

import uuid
import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String, Text, Integer, Numeric, DateTime, JSON, ForeignKey, Index,
    CheckConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column
from ledger.database import Base
from ledger.utils import utcnow


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProductStatus(str, enum.Enum):
    DRAFT = "draft"
    LISTED = "listed"
    RETIRED = "retired"


class ListingStatus(str, enum.Enum):
    PENDING = "pending"
    PUBLISHED = "published"
    FAILED = "failed"


class LeadType(str, enum.Enum):
    DEMO = "demo"
    TRIAL = "trial"
    SALE = "sale"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class TransactionType(str, enum.Enum):
    SALE = "sale"
    REFUND = "refund"


# ══════════════════════════════════════════════════════════════════════
#  PRODUCTS
# ══════════════════════════════════════════════════════════════════════

class Product(Base):
    """A sellable product distributed to one or more channels."""
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    niche: Mapped[str] = mapped_column(String(255), nullable=True)
    suggested_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ProductStatus.DRAFT.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_products_status", "status"),
        Index("ix_products_created_at", "created_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  LISTINGS — One publication attempt of a product on one platform
# ══════════════════════════════════════════════════════════════════════

class Listing(Base):
    """One attempt to publish a product on one platform."""
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Back-reference only; products are never cascade-deleted from here
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False)
    platform: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ListingStatus.PENDING.value)
    url: Mapped[str] = mapped_column(Text, nullable=True)
    failure_reason: Mapped[str] = mapped_column(Text, nullable=True)
    sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    published_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("sales >= 0", name="ck_listings_sales_non_negative"),
        CheckConstraint("revenue >= 0", name="ck_listings_revenue_non_negative"),
        Index("ix_listings_product_id", "product_id"),
        Index("ix_listings_status", "status"),
        Index("ix_listings_platform", "platform"),
        Index("ix_listings_created_at", "created_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  LEADS — Funnel events (demo → trial → sale)
# ══════════════════════════════════════════════════════════════════════

class Lead(Base):
    """Immutable funnel event. ``amount`` and ``description`` are only set for sales."""
    __tablename__ = "leads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    detail: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(255), nullable=False, default="unknown")
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_leads_type", "type"),
        Index("ix_leads_created_at", "created_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  CAMPAIGNS — Write-once multi-channel distribution summaries
# ══════════════════════════════════════════════════════════════════════

class Campaign(Base):
    """Summary of one multi-channel distribution attempt for a product."""
    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False)
    channels_used: Mapped[list] = mapped_column(JSON, nullable=False)
    results: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_campaigns_product_id", "product_id"),
        Index("ix_campaigns_created_at", "created_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  TRANSACTIONS & OPPORTUNITIES
# ══════════════════════════════════════════════════════════════════════

class Transaction(Base):
    """Money movement; completed sale transactions back the sales counters."""
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("listings.id"), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=TransactionType.SALE.value)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TransactionStatus.COMPLETED.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_transactions_listing_id", "listing_id"),
        Index("ix_transactions_status", "status"),
    )


class Opportunity(Base):
    """Researched product idea not yet turned into a product."""
    __tablename__ = "opportunities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    niche: Mapped[str] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


# Entity kind (table name) → model, as used by the RecordStore
ENTITY_MODELS: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (Product, Listing, Lead, Campaign, Transaction, Opportunity)
}
