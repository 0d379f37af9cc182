"""
Catalog Service — Product records and their draft/listed/retired status.
"""

import logging
from typing import Optional

from ledger.errors import ConstraintViolation, NotFound, UnknownProduct
from ledger.models import ProductStatus
from ledger.store import RecordStore
from ledger.utils import parse_amount

logger = logging.getLogger(__name__)

PRODUCT_STATUSES = tuple(s.value for s in ProductStatus)


class CatalogService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def create_product(
        self,
        title: str,
        niche: Optional[str] = None,
        suggested_price=None,
    ) -> dict:
        if not title or not title.strip():
            raise ConstraintViolation("title is required")
        price = None
        if suggested_price is not None:
            price = parse_amount(suggested_price, "suggested_price")
        product = await self.store.insert("products", {
            "title": title.strip(),
            "niche": niche,
            "suggested_price": price,
            "status": ProductStatus.DRAFT.value,
        })
        logger.info(f"Product {product['id']} created: {product['title']}")
        return product

    async def get_product(self, product_id) -> dict:
        try:
            return await self.store.get("products", product_id)
        except NotFound:
            raise UnknownProduct(product_id)

    async def list_products(
        self,
        status: Optional[str] = None,
        niche: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list:
        filters = {}
        if status:
            filters["status"] = status
        if niche:
            filters["niche"] = niche
        return await self.store.list("products", filters, limit=limit)

    async def set_product_status(self, product_id, status: str) -> dict:
        if status not in PRODUCT_STATUSES:
            raise ConstraintViolation(
                f"status must be one of {', '.join(PRODUCT_STATUSES)}, got {status!r}"
            )
        updated = await self.store.update_where("products", product_id, {"status": status})
        if updated is None:
            raise UnknownProduct(product_id)
        logger.info(f"Product {updated['id']} status → {status}")
        return updated
