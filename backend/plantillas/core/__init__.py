# Core module - utilities and base classes
from .result import success, failure, failure_from, Success, Failure, Result, ErrorCodes
from .exceptions import (
    PlantillasError, SchemaMismatchError, UnknownColumnsError,
    WorkbookError, UploadWindowClosedError,
    BackendError, BackendValidationError, TransportError,
)

__all__ = [
    # Result
    'success', 'failure', 'failure_from', 'Success', 'Failure', 'Result', 'ErrorCodes',
    # Exceptions
    'PlantillasError', 'SchemaMismatchError', 'UnknownColumnsError',
    'WorkbookError', 'UploadWindowClosedError',
    'BackendError', 'BackendValidationError', 'TransportError',
]
