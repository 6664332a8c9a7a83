# ledger/api/errors.py

"""
LEDGER ERROR -> HTTP RESPONSE

Body: {"detail": ..., "code": ..., "context": {...}}

- EntityNotFoundError          -> 404
- ConcurrentModificationError  -> 409 (includes DuplicateOperationError)
- any other LedgerError        -> 400
"""

from rest_framework import status
from rest_framework.response import Response

from ledger.services.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    LedgerError,
)


def status_for(exc: LedgerError) -> int:
    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConcurrentModificationError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def ledger_error_response(exc: LedgerError) -> Response:
    return Response(exc.as_dict(), status=status_for(exc))


def idempotency_key_from(request, data=None) -> str | None:
    """Body field wins over the Idempotency-Key header."""
    key = (data or {}).get("idempotency_key") or request.headers.get("Idempotency-Key")
    key = (key or "").strip()
    return key or None
