"""
Error taxonomy shared by the store, the services and the HTTP layer.

Every error carries a failure category and the HTTP status it maps to, and
renders as the structured payload ``{"error": ..., "message": ...}``.
"""

from typing import Optional


class LedgerError(Exception):
    category = "internal_error"
    status_code = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.category)
        self.message = message or self.category
        self.context = context

    def to_payload(self) -> dict:
        payload = {"error": self.category, "message": self.message}
        if self.context:
            payload["context"] = self.context
        return payload


class StorageUnavailable(LedgerError):
    """Transport/connection failure or store deadline exceeded."""
    category = "storage_unavailable"
    status_code = 503


class NotFound(LedgerError):
    category = "not_found"
    status_code = 404

    def __init__(self, kind: str, entity_id: Optional[object] = None, message: str = ""):
        super().__init__(message or f"{kind} {entity_id!s} not found", kind=kind, id=str(entity_id))
        self.kind = kind
        self.entity_id = entity_id


class UnknownProduct(NotFound):
    category = "unknown_product"

    def __init__(self, product_id: object):
        super().__init__("product", product_id, message=f"Product {product_id!s} does not exist")


class InvalidTransition(LedgerError):
    category = "invalid_transition"
    status_code = 409

    def __init__(self, entity_id: object, current: Optional[str], action: str):
        super().__init__(
            f"Cannot {action} listing {entity_id!s} in status {current!r}",
            id=str(entity_id), status=current, action=action,
        )
        self.current = current
        self.action = action


class InvalidAmount(LedgerError):
    category = "invalid_amount"
    status_code = 422


class MissingDetail(LedgerError):
    category = "missing_detail"
    status_code = 422


class ConstraintViolation(LedgerError):
    """Schema-level rejection (missing required field, absent table, bad enum value)."""
    category = "constraint_violation"
    status_code = 422


class InvalidLeadType(ConstraintViolation):
    category = "invalid_lead_type"
