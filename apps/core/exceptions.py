from rest_framework import status
from rest_framework.exceptions import APIException


class CoachingError(APIException):
    """
    Base class for domain validation failures.

    These describe a bad request, never a system fault. The API layer can
    render them directly: ``status_code`` maps to an HTTP status and
    ``as_dict()`` gives a payload with the error code, message and, where
    there is one, the offending field.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"

    def __init__(self, detail=None, field=None, extra=None):
        super().__init__(detail=detail)
        self.field = field
        self.extra = extra or {}

    @property
    def code(self):
        return self.default_code

    def as_dict(self):
        payload = {"code": self.default_code, "message": str(self.detail)}
        if self.field:
            payload["field"] = self.field
        payload.update(self.extra)
        return payload


class InvalidClient(CoachingError):
    default_detail = "The referenced user is not a client."
    default_code = "invalid_client"


class InvalidSpecification(CoachingError):
    default_detail = "Invalid target specification."
    default_code = "invalid_specification"


class RestDayMeasurements(InvalidSpecification):
    default_detail = "A rest day log cannot carry an exercise or measurements."
    default_code = "rest_day_measurements"


class NotFound(CoachingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidTransition(CoachingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Invalid transition."
    default_code = "invalid_transition"


class UnassignedExercise(CoachingError):
    default_detail = "The exercise is not assigned to this day."
    default_code = "unassigned_exercise"


class EmptyLog(CoachingError):
    default_detail = "At least one measurement is required."
    default_code = "empty_log"


class InvalidTimestamp(CoachingError):
    default_detail = "completed_at cannot be in the future."
    default_code = "invalid_timestamp"


class InvalidThread(CoachingError):
    default_detail = "Invalid comment thread."
    default_code = "invalid_thread"


class EmptyComment(InvalidThread):
    default_detail = "A comment needs content or an attachment."
    default_code = "empty_comment"


class UnknownQuestionKey(CoachingError):
    default_detail = "Unknown question key."
    default_code = "unknown_question_key"


class IncompleteAnswers(CoachingError):
    default_detail = "Some required questions are unanswered."
    default_code = "incomplete_answers"


class Conflict(CoachingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with a concurrent change. Please retry."
    default_code = "conflict"
