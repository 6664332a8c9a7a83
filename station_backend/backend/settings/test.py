# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- File-backed SQLite test database so threaded tests share one database
- BEGIN IMMEDIATE: concurrent ledger units serialize on the write lock
- Fast password hashing
- Ledger knobs pinned so tests do not depend on a local .env
- Ledger/report logs silenced below WARNING
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from .base import *  # noqa: F403
from .base import LOGGING

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "OPTIONS": {
            "transaction_mode": "IMMEDIATE",
            "timeout": 20,
        },
        "TEST": {
            "NAME": str(Path(tempfile.gettempdir()) / "station_ledger_test.sqlite3"),
        },
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LEDGER_ALLOW_NEGATIVE_BALANCES = False
LEDGER_MAX_ATTEMPTS = 3
ADMIN_PIN = "4321"

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_CLASSES": (),
}

LOGGING["loggers"]["ledger"]["level"] = "WARNING"
LOGGING["loggers"]["reports"]["level"] = "WARNING"
