"""
Excepciones base estandarizadas para Plantillas.

Jerarquía:
    PlantillasError (base)
    ├── SchemaMismatchError
    │   └── UnknownColumnsError
    ├── WorkbookError
    ├── UploadWindowClosedError
    └── BackendError
        ├── BackendValidationError
        └── TransportError
"""
from typing import Optional, Dict, Any, List


class PlantillasError(Exception):
    """
    Base exception para todos los errores de Plantillas.

    Attributes:
        message: Mensaje descriptivo del error.
        code: Código único para identificar el tipo de error.
        details: Información adicional para debugging.
    """
    code: str = "PLANTILLAS_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializa el error a diccionario para respuestas API."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


# ============ Schema Errors ============

class SchemaMismatchError(PlantillasError):
    """El archivo cargado no corresponde a la estructura de la plantilla."""
    code = "SCHEMA_MISMATCH"


class UnknownColumnsError(SchemaMismatchError):
    """Encabezados que no existen en la plantilla. Aborta la carga completa."""
    code = "UNKNOWN_COLUMNS"

    def __init__(self, columns: List[str], error_log: List[Dict[str, Any]]):
        super().__init__(
            f"Columnas no reconocidas en la plantilla: {', '.join(columns)}",
            details={"columns": columns, "errors": error_log},
        )
        self.columns = columns
        self.error_log = error_log


# ============ Workbook Errors ============

class WorkbookError(PlantillasError):
    """Archivo Excel ilegible o sin hojas."""
    code = "WORKBOOK_ERROR"


class UploadWindowClosedError(PlantillasError):
    """La fecha límite de carga de la publicación ya pasó."""
    code = "UPLOAD_WINDOW_CLOSED"


# ============ Backend Errors ============

class BackendError(PlantillasError):
    """Errores en la comunicación con el backend de reportes."""
    code = "BACKEND_ERROR"


class BackendValidationError(BackendError):
    """El backend rechazó los registros (HTTP 400 con detalle por columna)."""
    code = "BACKEND_VALIDATION"

    def __init__(self, message: str, error_log: List[Dict[str, Any]]):
        super().__init__(message, details={"errors": error_log})
        self.error_log = error_log


class TransportError(BackendError):
    """Error de red o respuesta HTTP inesperada."""
    code = "TRANSPORT_ERROR"
