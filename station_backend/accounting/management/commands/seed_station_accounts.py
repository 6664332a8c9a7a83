# accounting/management/commands/seed_station_accounts.py

from decimal import Decimal, InvalidOperation

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounting.models import Account


class Command(BaseCommand):
    help = "Seed the minimum money accounts for a station (one cash drawer, one bank account)"

    def add_arguments(self, parser):
        parser.add_argument("--cash-name", default="Cash Drawer")
        parser.add_argument("--bank-name", default="Main Bank")
        parser.add_argument("--cash-opening", default="0.00", help="Opening balance for a NEW cash account")
        parser.add_argument("--bank-opening", default="0.00", help="Opening balance for a NEW bank account")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding station accounts...")

        accounts = [
            (Account.TYPE_CASH, options["cash_name"], options["cash_opening"]),
            (Account.TYPE_BANK, options["bank_name"], options["bank_opening"]),
        ]

        created_count = 0
        for account_type, name, opening in accounts:
            if Account.objects.filter(account_type=account_type, status=Account.STATUS_ACTIVE).exists():
                self.stdout.write(f"  = active {account_type} account already exists, skipping")
                continue

            try:
                opening_balance = Decimal(str(opening)).quantize(Decimal("0.01"))
            except InvalidOperation as exc:
                raise CommandError(f"Invalid opening balance for {account_type}: {opening}") from exc

            Account.objects.create(
                account_type=account_type,
                name=name,
                opening_balance=opening_balance,
            )
            created_count += 1
            self.stdout.write(f"  + {name} ({account_type}) opening={opening_balance}")

        self.stdout.write(self.style.SUCCESS(f"Done. Created {created_count} account(s)."))
