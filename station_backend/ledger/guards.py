# ledger/guards.py

"""
CACHED-FIELD WRITE GUARD

Models whose balances are caches of a ledger log list those fields in
LEDGER_MANAGED_FIELDS. A plain save() of an existing row never writes them
(nor `version`): only the coordinator's versioned compare-and-swap does.

Without this, an instance loaded before a ledger operation and saved after
it would put the stale balance back.
"""

from __future__ import annotations


class LedgerCachedFieldsMixin:
    LEDGER_MANAGED_FIELDS: tuple[str, ...] = ()

    @classmethod
    def ledger_managed_fields(cls) -> frozenset[str]:
        return frozenset((*cls.LEDGER_MANAGED_FIELDS, "version"))

    def _writable_fields(self, update_fields) -> list[str]:
        managed = self.ledger_managed_fields()
        if update_fields is None:
            return [
                f.name
                for f in self._meta.concrete_fields
                if not f.primary_key and f.name not in managed
            ]
        return [name for name in update_fields if name not in managed]

    def save(self, *args, **kwargs):
        if not self._state.adding and not kwargs.get("force_insert"):
            fields = self._writable_fields(kwargs.get("update_fields"))
            if not fields:
                return None
            kwargs["update_fields"] = fields
        return super().save(*args, **kwargs)
