# ledger/signals.py

"""
LEDGER CHANGE NOTIFICATIONS

`ledger_changed` fires once per APPLIED operation, after the database
transaction commits. Rejected or rolled-back operations never fire it.

Receiver kwargs:
- kind:          operation kind ("purchase", "sale", ...)
- operation_id:  LedgerOperation id (str)
- entities:      tuple of (entity_kind, id) pairs touched by the operation,
                 e.g. (("product", "..."), ("account", "3"))
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger("ledger")

ledger_changed = Signal()


def _send(kind: str, operation_id: str, entities: tuple) -> None:
    responses = ledger_changed.send_robust(
        sender="ledger",
        kind=kind,
        operation_id=operation_id,
        entities=entities,
    )
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.warning(
                "Ledger change receiver failed",
                extra={
                    "receiver": getattr(receiver, "__qualname__", repr(receiver)),
                    "operation_id": operation_id,
                    "error": str(response),
                },
            )


def publish_ledger_change(*, kind: str, operation_id, entities) -> None:
    """Schedule a change notification for when the current unit commits."""
    payload = tuple((str(k), str(v)) for k, v in entities)
    op_id = str(operation_id)
    transaction.on_commit(lambda: _send(kind, op_id, payload))
