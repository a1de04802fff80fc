"""
API exception handling.

DRF's default handler covers API exceptions; database errors that escape a
view are translated here into HTTP responses instead of bare 500 pages.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('trade3.core')


class BusinessRuleError(APIException):
    """A request that is well-formed but breaks a document or stock rule"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The operation is not allowed.'
    default_code = 'bad_request'


def _error_response(status_code, message, error):
    return Response(
        {'status_code': status_code, 'message': message, 'error': error},
        status=status_code,
    )


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'

    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {view_name}: {exc}")
        return _error_response(
            status.HTTP_409_CONFLICT,
            'A record with these values already exists or is still referenced.',
            'Conflict',
        )

    if isinstance(exc, ObjectDoesNotExist):
        logger.info(f"Missing record in {view_name}: {exc}")
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc) or 'Record not found.', 'Not Found')

    if isinstance(exc, (DjangoValidationError, ValueError)):
        # Lookups with malformed identifiers (e.g. ?store=abc)
        logger.info(f"Invalid identifier in {view_name}: {exc}")
        return _error_response(status.HTTP_404_NOT_FOUND, 'Invalid identifier.', 'Not Found')

    if isinstance(exc, DatabaseError):
        logger.error(f"Database error in {view_name}: {exc}", exc_info=True)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            'Internal server error.',
            'Internal Server Error',
        )

    return None
