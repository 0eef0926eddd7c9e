import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class AttemptError(APIException):
    """Base for expected test-taking outcomes, rendered as typed error payloads."""


class TestNotFoundError(AttemptError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Test not found."
    default_code = 'test_not_found'


class AttemptNotFoundError(AttemptError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Test attempt not found."
    default_code = 'attempt_not_found'


class QuestionNotFoundError(AttemptError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Question not found."
    default_code = 'question_not_found'


class AlreadyCompletedError(AttemptError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already completed this test."
    default_code = 'already_completed'


class AttemptLockedError(AttemptError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Test has already been submitted."
    default_code = 'attempt_locked'


class AttemptNotCompletedError(AttemptError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Only submitted attempts can be regraded."
    default_code = 'attempt_not_completed'


class StoreUnavailableError(AttemptError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is temporarily unavailable. Please try again."
    default_code = 'store_unavailable'


def api_exception_handler(exc, context):
    """DRF's handler, plus a machine-readable ``code`` on engine errors."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, AttemptError):
        response.data['code'] = exc.default_code

    if response.status_code >= 500:
        view = context.get('view')
        logger.error("%s failed with %s: %s", type(view).__name__, response.status_code, exc)
    return response
