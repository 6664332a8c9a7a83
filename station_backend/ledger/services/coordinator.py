# ledger/services/coordinator.py

"""
LEDGER COORDINATOR (AUTHORITATIVE)

Applies one business event as ONE unit of work:

    PENDING -> VALIDATED -> APPLIED
       |          |
       +----------+-----> REJECTED

Guarantees:
- Validation happens before any row is read for update
- Everything (idempotency claim, locks, cached writes, log appends) runs in
  a single transaction.atomic() block: all of it lands, or none of it
- Rows are locked in one global order (see LOCK_ORDER) to avoid deadlocks
- A lost compare-and-swap rolls the unit back and retries it, at most
  LEDGER_MAX_ATTEMPTS times, then raises ConcurrentModificationError
- A consumed idempotency key raises DuplicateOperationError (never retried)
- ledger_changed is sent only after the unit commits
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import IntegrityError, transaction

from accounting.services.account_store import lock_accounts
from accounting.services.card_store import lock_card_payments
from ledger.models import LedgerOperation
from ledger.services.exceptions import (
    ConcurrentModificationError,
    DuplicateOperationError,
    InvalidOperationError,
    LedgerError,
    StaleWriteError,
)
from ledger.services.locking import LOCK_ORDER
from ledger.signals import publish_ledger_change
from products.services.product_ledger import lock_nozzles, lock_products
from purchases.services.supplier_store import lock_suppliers

logger = logging.getLogger("ledger")


class OperationState:
    PENDING = "pending"
    VALIDATED = "validated"
    APPLIED = "applied"
    REJECTED = "rejected"


_TRANSITIONS = {
    OperationState.PENDING: {OperationState.VALIDATED, OperationState.REJECTED},
    OperationState.VALIDATED: {OperationState.APPLIED, OperationState.REJECTED},
    OperationState.APPLIED: set(),
    OperationState.REJECTED: set(),
}


def max_attempts() -> int:
    try:
        return max(1, int(getattr(settings, "LEDGER_MAX_ATTEMPTS", 3)))
    except (TypeError, ValueError):
        return 3


@dataclass
class LockedRows:
    nozzles: dict = field(default_factory=dict)
    products: dict = field(default_factory=dict)
    card_payments: dict = field(default_factory=dict)
    suppliers: dict = field(default_factory=dict)
    accounts: dict = field(default_factory=dict)


class LedgerUnit:
    """
    One in-flight ledger operation.

    Tracks the state machine, the claimed LedgerOperation row and the
    entities touched (for the change notification).
    """

    def __init__(self, kind: str):
        self.kind = kind
        self.state = OperationState.PENDING
        self.event = None
        self.operation: LedgerOperation | None = None
        self.attempt = 0
        self._entities: dict[tuple[str, str], None] = {}
        self._locked_kinds: set[str] = set()

    # ---------------- state machine ----------------

    def _move(self, new_state: str, **extra) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidOperationError(
                f"Illegal ledger state transition {self.state} -> {new_state}",
                kind=self.kind,
            )
        self.state = new_state
        log = logger.warning if new_state == OperationState.REJECTED else logger.info
        log(
            f"Ledger operation {new_state}",
            extra={"kind": self.kind, "state": new_state, "attempt": self.attempt, **extra},
        )

    def validated(self, event) -> None:
        self.event = event
        self._move(OperationState.VALIDATED)

    def applied(self) -> None:
        self._move(
            OperationState.APPLIED,
            operation_id=str(self.operation.pk) if self.operation else None,
            entities=[f"{k}:{v}" for k, v in self.entities],
        )

    def rejected(self, exc: Exception) -> None:
        self._move(
            OperationState.REJECTED,
            code=getattr(exc, "code", type(exc).__name__),
            reason=str(exc),
        )

    # ---------------- unit helpers ----------------

    @property
    def entities(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._entities)

    def touch(self, entity_kind: str, entity_id) -> None:
        self._entities[(entity_kind, str(entity_id))] = None

    def begin_attempt(self, attempt: int) -> None:
        self.attempt = attempt
        self.operation = None
        self._entities = {}
        self._locked_kinds = set()

    def claim(self) -> LedgerOperation:
        """Create the LedgerOperation row; a consumed key is a duplicate."""
        key = getattr(self.event, "idempotency_key", None)

        if key and LedgerOperation.objects.filter(idempotency_key=key).exists():
            raise DuplicateOperationError(
                "Operation with this idempotency key was already applied",
                idempotency_key=key,
            )

        try:
            with transaction.atomic():
                self.operation = LedgerOperation.objects.create(
                    kind=self.kind,
                    idempotency_key=key,
                    payload=self.event.to_payload(),
                )
        except IntegrityError as exc:
            raise DuplicateOperationError(
                "Operation with this idempotency key was already applied",
                idempotency_key=key,
            ) from exc
        return self.operation

    def lock(
        self, *, nozzles=(), products=(), card_payments=(), suppliers=(), accounts=()
    ) -> LockedRows:
        """
        Lock every row the unit will write, in the global order.

        May be called more than once per unit (e.g. nozzle first to learn
        its product) as long as kinds are requested in LOCK_ORDER.
        """
        requested = {
            "nozzle": nozzles,
            "product": products,
            "card_payment": card_payments,
            "supplier": suppliers,
            "account": accounts,
        }
        lockers = {
            "nozzle": lock_nozzles,
            "product": lock_products,
            "card_payment": lock_card_payments,
            "supplier": lock_suppliers,
            "account": lock_accounts,
        }

        rows = LockedRows()
        for entity_kind in LOCK_ORDER:
            ids = [i for i in requested[entity_kind] if i]
            if not ids:
                continue
            later = LOCK_ORDER[LOCK_ORDER.index(entity_kind) + 1:]
            if self._locked_kinds & set(later):
                raise InvalidOperationError(
                    f"Lock order violated: {entity_kind} requested after {sorted(self._locked_kinds)}",
                    kind=self.kind,
                )
            locked = lockers[entity_kind](ids)
            self._locked_kinds.add(entity_kind)
            setattr(rows, f"{entity_kind}s", locked)
        return rows


def run_ledger_operation(kind: str, build, apply):
    """
    Drive one operation through validation, the atomic unit and retries.

    build():            -> validated event (raises LedgerValidationError)
    apply(unit, event): -> result, runs inside the atomic unit
    """
    unit = LedgerUnit(kind)

    try:
        event = build()
    except LedgerError as exc:
        unit.rejected(exc)
        raise
    unit.validated(event)

    attempts = max_attempts()
    for attempt in range(1, attempts + 1):
        unit.begin_attempt(attempt)
        try:
            with transaction.atomic():
                unit.claim()
                result = apply(unit, event)
                publish_ledger_change(
                    kind=kind,
                    operation_id=unit.operation.pk,
                    entities=unit.entities,
                )
        except StaleWriteError as exc:
            logger.warning(
                "Optimistic lock conflict; retrying ledger unit",
                extra={"kind": kind, "attempt": attempt, "max_attempts": attempts, "error": str(exc)},
            )
            continue
        except LedgerError as exc:
            unit.rejected(exc)
            raise
        except Exception as exc:
            logger.exception(
                "Unexpected failure while applying ledger operation",
                extra={"kind": kind, "attempt": attempt},
            )
            unit.rejected(exc)
            raise

        unit.applied()
        return result

    exc = ConcurrentModificationError(
        f"Gave up after {attempts} attempts due to concurrent modification",
        kind=kind,
        attempts=attempts,
    )
    unit.rejected(exc)
    raise exc
