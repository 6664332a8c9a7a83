# ledger/tests/helpers.py

"""
Shared fixtures for ledger tests.

Rows are created directly through the ORM; stock and balances are then
moved only through the ledger services, never written by hand.
"""

from decimal import Decimal

from django.contrib.auth import get_user_model

from accounting.models import Account
from ledger.services.stock_service import record_initial_stock
from products.models import Nozzle, Product
from purchases.models import Supplier


def make_user(username="operator"):
    return get_user_model().objects.create_user(username=username, password="pass12345")


def make_account(name="Cash Drawer", account_type=Account.TYPE_CASH, opening="0.00"):
    return Account.objects.create(
        name=name,
        account_type=account_type,
        opening_balance=Decimal(opening),
    )


def make_supplier(name="Fuel Depot"):
    return Supplier.objects.create(name=name)


def make_product(name="Petrol", *, selling_price="120.00", product_type=Product.ProductType.FUEL, **extra):
    return Product.objects.create(
        name=name,
        product_type=product_type,
        selling_price=Decimal(selling_price),
        **extra,
    )


def make_nozzle(product, number="N1", *, pump=1, initial="0.000"):
    return Nozzle.objects.create(
        nozzle_number=number,
        pump_number=pump,
        product=product,
        initial_reading=Decimal(initial),
    )


def stocked_product(quantity, unit_cost, **kwargs):
    """A product whose opening stock went through the ledger."""
    product = make_product(**kwargs)
    record_initial_stock(product_id=product.pk, quantity=quantity, unit_cost=unit_cost)
    product.refresh_from_db()
    return product
