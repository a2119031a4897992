"""
API error formatting.

Every error response carries ``error`` (a short code) and ``message`` (human
readable). Validation failures also carry the per-field ``errors``.
"""
from rest_framework.exceptions import ValidationError
from rest_framework.views import exception_handler


def _first_message(errors):
    if isinstance(errors, dict):
        for field, value in errors.items():
            message = _first_message(value)
            if message:
                if field in ('non_field_errors', 'detail'):
                    return message
                return f"{field}: {message}"
        return None
    if isinstance(errors, (list, tuple)):
        for value in errors:
            message = _first_message(value)
            if message:
                return message
        return None
    return str(errors) if errors is not None else None


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(exc, ValidationError):
        response.data = {
            'error': 'validation_error',
            'message': _first_message(data) or 'Invalid input.',
            'errors': data,
        }
    elif isinstance(data, dict) and 'detail' in data:
        detail = data['detail']
        response.data = {
            'error': getattr(detail, 'code', None) or 'error',
            'message': str(detail),
        }
    else:
        response.data = {
            'error': 'error',
            'message': _first_message(data) or 'Request failed.',
        }
    return response
