# apps/core/exceptions.py
import logging

from rest_framework.views import exception_handler
from rest_framework import status
from rest_framework.response import Response
from rest_framework.exceptions import APIException, ValidationError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = '23505'
FOREIGN_KEY_VIOLATION = '23503'


class NotFoundError(APIException):
    """Raised when no row exists for the requested id"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = {'message': 'No encontrado'}
    default_code = 'not_found'


class ConflictError(APIException):
    """Raised when a write collides with a unique constraint"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = {'message': 'El registro ya existe'}
    default_code = 'conflict'


class DuplicateDniError(ConflictError):
    """Raised when another client (active or not) already owns the DNI"""
    default_detail = {'message': 'Ya existe un alumno con este DNI'}
    default_code = 'duplicate_dni'


class ReferentialError(APIException):
    """Raised when deleting a row that other rows still reference"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = {'message': 'El registro tiene elementos asociados'}
    default_code = 'referential_integrity'


class InvalidAssociationError(ReferentialError):
    """Raised when an association set names ids that do not exist"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'invalid_association'

    def __init__(self, field, missing_ids=()):
        self.field = field
        self.missing_ids = set(missing_ids)
        if self.missing_ids:
            ids = ', '.join(str(pk) for pk in sorted(self.missing_ids))
            message = f'No existen registros con id: {ids}'
        else:
            message = 'Alguno de los ids indicados no existe'
        super().__init__({field: [message]})


class WriteFailedError(APIException):
    """Raised when a transactional write fails for a non-domain reason"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = {'message': 'No se pudo guardar los cambios'}
    default_code = 'write_failed'


def driver_error_code(exc):
    """Return the SQLSTATE reported by the database driver, if any"""
    cause = getattr(exc, '__cause__', None)
    for source in (cause, exc):
        code = getattr(source, 'pgcode', None) or getattr(source, 'sqlstate', None)
        if code:
            return code
    return None


def is_unique_violation(exc, column=None):
    """Check whether an IntegrityError comes from a unique constraint"""
    code = driver_error_code(exc)
    text = str(exc).lower()
    if code is not None:
        matched = code == UNIQUE_VIOLATION
    else:
        matched = 'unique' in text
    if matched and column is not None:
        return column.lower() in text
    return matched


def is_foreign_key_violation(exc):
    code = driver_error_code(exc)
    if code is not None:
        return code == FOREIGN_KEY_VIOLATION
    return 'foreign key' in str(exc).lower()


DEFAULT_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: 'Datos inválidos',
    status.HTTP_404_NOT_FOUND: 'No encontrado',
    status.HTTP_405_METHOD_NOT_ALLOWED: 'Método no permitido',
    status.HTTP_409_CONFLICT: 'Conflicto con el estado actual',
    status.HTTP_500_INTERNAL_SERVER_ERROR: 'Error interno del servidor',
}


def custom_exception_handler(exc, context):
    """Custom exception handler to return all errors in {message, code[, errors]} format"""
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'API'}: {exc}")
        return Response(
            {'message': DEFAULT_MESSAGES[status.HTTP_500_INTERNAL_SERVER_ERROR], 'code': 'internal_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code = getattr(exc, 'default_code', 'error')
    default_message = DEFAULT_MESSAGES.get(response.status_code, 'Error')
    data = response.data

    if isinstance(exc, ValidationError) or not isinstance(data, dict):
        errors = data if isinstance(data, dict) else {'non_field_errors': data}
        response.data = {'message': default_message, 'code': code, 'errors': errors}
    elif 'message' in data:
        response.data = {'message': str(data['message']), 'code': code}
    elif 'detail' in data:
        response.data = {'message': str(data['detail']), 'code': code}
    else:
        # Field-keyed detail raised outside a serializer (e.g. association ids)
        response.data = {'message': default_message, 'code': code, 'errors': data}

    return response
