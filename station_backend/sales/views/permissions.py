# sales/views/permissions.py

import hmac
import logging

from django.conf import settings
from rest_framework.permissions import BasePermission

logger = logging.getLogger("ledger")


class HasAdminPin(BasePermission):
    """
    Admin-PIN gate for nozzle meter readings.

    POLICY:
    - The caller sends the shared PIN in the `X-Admin-Pin` header
    - The PIN is compared against settings.ADMIN_PIN (constant time)
    - An unset ADMIN_PIN closes the gate entirely
    """

    message = "A valid admin PIN is required to record nozzle readings."
    header = "X-Admin-Pin"

    def has_permission(self, request, view):
        expected = (getattr(settings, "ADMIN_PIN", "") or "").strip()
        supplied = (request.headers.get(self.header) or "").strip()

        if not expected:
            logger.warning("Admin PIN gate is closed: ADMIN_PIN is not configured")
            return False

        if not supplied or not hmac.compare_digest(supplied.encode(), expected.encode()):
            logger.warning(
                "Admin PIN rejected",
                extra={"path": request.path, "user": str(getattr(request, "user", ""))},
            )
            return False
        return True
