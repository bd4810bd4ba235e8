import functools
import logging

from django.conf import settings
from django.db import IntegrityError
from rest_framework.response import Response

from .exceptions import Conflict

logger = logging.getLogger(__name__)


def api_response(success=True, message="", data=None, status=200):
    return Response({
        "status": "success" if success else "error",
        "message": message,
        "data": data
    }, status=status)


def retry_on_conflict(func):
    """
    Re-run a write that lost a race on a unique constraint.

    The wrapped function must open its own ``transaction.atomic()`` block so
    every attempt starts from a clean transaction (or savepoint). After
    ``COACHING_CONFLICT_RETRIES`` failed attempts a ``Conflict`` is raised.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, getattr(settings, 'COACHING_CONFLICT_RETRIES', 3))
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except IntegrityError as e:
                logger.warning(f"[Conflict] {func.__name__} attempt {attempt}/{attempts} failed: {e}")
        raise Conflict(f"Could not complete {func.__name__} after {attempts} attempts.")
    return wrapper
