# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for the ledger coordinator.

Every error carries:
- code: stable machine-readable kind (used by the API layer)
- context: the values that caused the rejection (requested vs available, ids)

A raised LedgerError always means the originating operation was rejected
as a whole: no movement, no transaction, no balance change.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all ledger failures."""

    code = "ledger_error"

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.code)
        self.context = {k: v for k, v in context.items() if v is not None}

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "detail": str(self),
            "context": {k: str(v) for k, v in self.context.items()},
        }


# ------------------------------------------------------------
# Validation (rejected before any row is touched)
# ------------------------------------------------------------


class LedgerValidationError(LedgerError):
    code = "invalid_operation"


class InvalidQuantityError(LedgerValidationError):
    """Zero, negative or non-numeric quantity / amount."""

    code = "invalid_quantity"


class InvalidOperationError(LedgerValidationError):
    """Structurally invalid event (same-account transfer, reading going backwards, ...)."""

    code = "invalid_operation"


# ------------------------------------------------------------
# Balance guards
# ------------------------------------------------------------


class InsufficientStockError(LedgerError):
    code = "insufficient_stock"


class InsufficientFundsError(LedgerError):
    code = "insufficient_funds"


# ------------------------------------------------------------
# Lookups
# ------------------------------------------------------------


class EntityNotFoundError(LedgerError):
    code = "not_found"


class AccountNotFoundError(EntityNotFoundError):
    code = "account_not_found"


class ProductNotFoundError(EntityNotFoundError):
    code = "product_not_found"


class SupplierNotFoundError(EntityNotFoundError):
    code = "supplier_not_found"


class NozzleNotFoundError(EntityNotFoundError):
    code = "nozzle_not_found"


class CardTypeNotFoundError(EntityNotFoundError):
    code = "card_type_not_found"


class CardPaymentNotFoundError(EntityNotFoundError):
    code = "card_payment_not_found"


# ------------------------------------------------------------
# Concurrency / idempotency
# ------------------------------------------------------------


class ConcurrentModificationError(LedgerError):
    """Optimistic-lock conflict survived every bounded retry."""

    code = "concurrent_modification"


class DuplicateOperationError(ConcurrentModificationError):
    """The idempotency key was already consumed by an applied operation."""

    code = "duplicate_operation"


class StaleWriteError(Exception):
    """
    Internal signal: a versioned write lost its compare-and-swap.

    Never escapes the coordinator; it triggers a retry of the whole unit.
    """


# ------------------------------------------------------------
# Integrity
# ------------------------------------------------------------


class IntegrityViolationError(LedgerError):
    """A reconciliation check failed (cached value != value derived from the logs)."""

    code = "integrity_violation"

    def as_warning(self) -> dict:
        payload = self.as_dict()
        payload["severity"] = "warning"
        return payload
