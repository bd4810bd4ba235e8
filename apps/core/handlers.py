from rest_framework.views import exception_handler

from .exceptions import CoachingError
from .utils import api_response


def coaching_exception_handler(exc, context):
    """
    DRF exception handler that wraps domain errors in the standard envelope.
    Everything else falls through to DRF's default handling.
    """
    if isinstance(exc, CoachingError):
        return api_response(
            success=False,
            message=str(exc.detail),
            data=exc.as_dict(),
            status=exc.status_code,
        )
    return exception_handler(exc, context)
