"""
Store error mapping.

Write failures coming back from the database are translated into a small
fixed set of user-facing messages; anything unclassified keeps its raw
message.
"""
import logging

from django.core.exceptions import PermissionDenied
from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

PERMISSION_DENIED_MESSAGE = "Permission denied. Please check if you are logged in as an admin user."
INVALID_REFERENCE_MESSAGE = "Invalid category selected. Please choose a valid category."
MISSING_FIELD_MESSAGE = "Please fill in all required fields."
PROTECTED_MESSAGE = "This item is referenced by existing records and cannot be deleted."

# SQLSTATE codes reported by PostgreSQL
FOREIGN_KEY_VIOLATION = '23503'
NOT_NULL_VIOLATION = '23502'
INSUFFICIENT_PRIVILEGE = '42501'


def _sqlstate(exc):
    cause = exc.__cause__
    code = getattr(cause, 'pgcode', None) or getattr(cause, 'sqlstate', None)
    if code:
        return code
    # SQLite only reports a message
    message = str(exc).upper()
    if 'FOREIGN KEY' in message:
        return FOREIGN_KEY_VIOLATION
    if 'NOT NULL' in message:
        return NOT_NULL_VIOLATION
    return None


def describe_store_error(exc: Exception) -> str:
    """Return the user-facing message for a failed store operation."""
    if isinstance(exc, PermissionDenied):
        return PERMISSION_DENIED_MESSAGE
    if isinstance(exc, ProtectedError):
        return PROTECTED_MESSAGE
    if isinstance(exc, IntegrityError):
        code = _sqlstate(exc)
        if code == FOREIGN_KEY_VIOLATION:
            return INVALID_REFERENCE_MESSAGE
        if code == NOT_NULL_VIOLATION:
            return MISSING_FIELD_MESSAGE
        if code == INSUFFICIENT_PRIVILEGE:
            return PERMISSION_DENIED_MESSAGE
    return str(exc)


def error_response(title: str, detail, status_code: int) -> Response:
    return Response({'error': title, 'detail': detail}, status=status_code)


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    Delegates to the default handler and additionally converts store
    constraint violations into 400 responses with a mapped message.
    """
    if isinstance(exc, (IntegrityError, ProtectedError)):
        view = context.get('view')
        logger.warning(f"Store rejected write in {view.__class__.__name__}: {exc}")
        return error_response('Store Error', describe_store_error(exc), status.HTTP_400_BAD_REQUEST)
    return exception_handler(exc, context)
