# ledger/services/__init__.py
"""
Ledger service layer.

Import the operation you need from its module, e.g.
`from ledger.services.sale_service import record_sale`.
"""
