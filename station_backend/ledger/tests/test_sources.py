# ledger/tests/test_sources.py

import warnings
from pathlib import Path

from django.conf import settings
from django.test import SimpleTestCase

APPS = ("accounting", "ledger", "products", "purchases", "reports", "sales")


class SourceCompileTests(SimpleTestCase):
    """
    GUARANTEES:
    - Every project module compiles with warnings escalated to errors
      (no invalid escape sequences in docstrings or diagrams)
    """

    def test_modules_compile_without_warnings(self):
        root = Path(settings.BASE_DIR)
        sources = [path for app in APPS for path in sorted((root / app).rglob("*.py"))]
        self.assertTrue(sources)

        for path in sources:
            with self.subTest(module=str(path.relative_to(root))):
                with warnings.catch_warnings():
                    warnings.simplefilter("error")
                    compile(path.read_text(encoding="utf-8"), str(path), "exec")
