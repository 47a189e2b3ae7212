"""
Resultado de las operaciones de carga: Success con el valor o Failure con
mensaje, código y detalles (log de errores por columna).

    result = await upload_service.upload(pub_tem_id, email, content)
    if result.is_success():
        total = result.value
    else:
        errores = result.details.get("errors", [])
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar('T')


@dataclass
class Success(Generic[T]):
    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False


@dataclass
class Failure:
    error: str
    code: str = "UNKNOWN"
    details: Dict[str, Any] = field(default_factory=dict)

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True


Result = Union[Success[T], Failure]


def success(value: T) -> Success[T]:
    return Success(value)


def failure(error: str, code: str = "UNKNOWN", details: Dict[str, Any] = None) -> Failure:
    return Failure(error=error, code=code, details=details or {})


def failure_from(exc) -> Failure:
    """Failure con el mensaje, code y details de una PlantillasError"""
    return Failure(error=exc.message, code=exc.code, details=dict(exc.details))


class ErrorCodes:
    UNKNOWN = "UNKNOWN"

    # Libro recibido
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    UNKNOWN_COLUMNS = "UNKNOWN_COLUMNS"
    EMPTY_WORKBOOK = "EMPTY_WORKBOOK"
    WORKBOOK_ERROR = "WORKBOOK_ERROR"
    UPLOAD_WINDOW_CLOSED = "UPLOAD_WINDOW_CLOSED"

    # Backend
    BACKEND_VALIDATION = "BACKEND_VALIDATION"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
