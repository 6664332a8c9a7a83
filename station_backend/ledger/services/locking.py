# ledger/services/locking.py

"""
OPTIMISTIC WRITE GUARD

Every ledger-managed row (Product, Account, Supplier, Nozzle,
CardPayment) carries a `version` integer. Cached fields are written with a compare-and-swap:

    UPDATE ... SET <fields>, version = version + 1
    WHERE pk = %s AND version = <version read under lock>

Zero rows updated means another writer got there first; the caller raises
StaleWriteError and the coordinator retries the whole unit.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from ledger.services.exceptions import StaleWriteError

logger = logging.getLogger("ledger")

# Rows are always locked in this order (ascending pk within a kind).
LOCK_ORDER = ("nozzle", "product", "card_payment", "supplier", "account")


def _has_field(model, name: str) -> bool:
    return any(f.name == name for f in model._meta.concrete_fields)


def compare_and_swap(model, *, pk, expected_version: int, **values) -> bool:
    if _has_field(model, "updated_at") and "updated_at" not in values:
        values["updated_at"] = timezone.now()

    updated = model.objects.filter(pk=pk, version=expected_version).update(
        version=F("version") + 1,
        **values,
    )
    return updated == 1


def versioned_write(instance, **values):
    """
    CAS-write `values` onto an instance loaded under lock.

    On success the in-memory instance mirrors the stored row (including
    the bumped version). On conflict raises StaleWriteError.
    """
    model = type(instance)
    ok = compare_and_swap(
        model,
        pk=instance.pk,
        expected_version=instance.version,
        **values,
    )
    if not ok:
        logger.warning(
            "Versioned write lost compare-and-swap",
            extra={
                "model": model._meta.label,
                "pk": str(instance.pk),
                "expected_version": instance.version,
            },
        )
        raise StaleWriteError(f"{model._meta.label} {instance.pk} changed concurrently")

    for name, value in values.items():
        setattr(instance, name, value)
    instance.version += 1
    return instance


def lock_rows(model, ids, *, not_found, id_field: str) -> dict:
    """
    SELECT ... FOR UPDATE the given primary keys in ascending pk order.

    Returns {requested id string: locked instance}. Unknown or malformed
    ids raise `not_found` (an EntityNotFoundError subclass).
    """
    wanted = {}
    for raw in ids:
        if raw in (None, ""):
            continue
        try:
            wanted[str(raw)] = model._meta.pk.to_python(raw)
        except (ValidationError, ValueError, TypeError) as exc:
            raise not_found(f"{model._meta.verbose_name.title()} not found", **{id_field: raw}) from exc

    if not wanted:
        return {}

    rows = model.objects.select_for_update().filter(pk__in=set(wanted.values())).order_by("pk")
    by_pk = {row.pk: row for row in rows}

    locked = {}
    for raw, pk in wanted.items():
        if pk not in by_pk:
            raise not_found(f"{model._meta.verbose_name.title()} not found", **{id_field: raw})
        locked[raw] = by_pk[pk]
    return locked
