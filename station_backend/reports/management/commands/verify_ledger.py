# reports/management/commands/verify_ledger.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from reports.services.aggregator import reconcile_ledger


class Command(BaseCommand):
    help = "Reconcile every cached balance (accounts, stock, suppliers) against its log."

    def add_arguments(self, parser):
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any integrity warning is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger Integrity Check"))
        warnings = reconcile_ledger()

        for warning in warnings:
            context = ", ".join(f"{k}={v}" for k, v in warning["context"].items())
            self.stderr.write(self.style.ERROR(f"[FAIL] {warning['detail']}"))
            if context:
                self.stderr.write(f"  {context}")

        self.stdout.write("")
        if not warnings:
            self.stdout.write(self.style.SUCCESS("[OK] All cached balances match their logs"))
        else:
            self.stderr.write(self.style.ERROR(f"Integrity check found {len(warnings)} problem(s)"))

        return self._exit(strict and bool(warnings))

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
