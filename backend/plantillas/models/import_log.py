from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class RegisterError(BaseModel):
    """Error puntual de una fila (register) dentro de una columna"""
    model_config = ConfigDict(populate_by_name=True)

    # "register" choca con ABCMeta.register de BaseModel
    register_: int = Field(..., alias="register", description="Fila del archivo (1 = encabezado)")
    message: str
    value: Optional[Any] = None


class ColumnErrors(BaseModel):
    """Errores agrupados por columna, formato compartido con el backend"""
    column: str
    errors: List[RegisterError] = Field(default_factory=list)


def parse_error_details(details: Any) -> List[ColumnErrors]:
    """Convierte el arreglo `details` de una respuesta 400 en el log de errores"""
    log: List[ColumnErrors] = []
    if not isinstance(details, list):
        return log
    for item in details:
        if not isinstance(item, dict):
            continue
        errors = []
        for err in item.get("errors") or []:
            if not isinstance(err, dict):
                continue
            try:
                register = int(err.get("register"))
            except (TypeError, ValueError):
                register = 0
            errors.append(RegisterError(
                register=register,
                message=str(err.get("message", "")),
                value=err.get("value"),
            ))
        log.append(ColumnErrors(column=str(item.get("column", "")), errors=errors))
    return log


def errors_by_field(log: List[ColumnErrors]) -> Dict[str, Dict[int, List[str]]]:
    """Mapa columna -> fila -> mensajes, para pintar los errores por celda"""
    result: Dict[str, Dict[int, List[str]]] = {}
    for column in log:
        per_row = result.setdefault(column.column, {})
        for err in column.errors:
            per_row.setdefault(err.register_, []).append(err.message)
    return result
