"""
Conversión del valor de una celda al tipo declarado del campo.

Una celda que no se puede convertir conserva su texto original; el backend es
quien decide si el registro es válido.
"""
import json
import re
from datetime import date, datetime
from typing import Any, Callable, Dict

from plantillas.models.template import DataType
from plantillas.utils.date_utils import to_iso_string, try_parse_date

_INT_PREFIX_RE = re.compile(r"^\s*[+-]?\d+")
_FLOAT_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def cell_text(value: Any) -> str:
    """Texto de un valor como lo mostraría la celda: 3.0 -> "3", True -> "true"."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return to_iso_string(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def to_integer(value: Any) -> Any:
    if isinstance(value, bool):
        return cell_text(value)
    if isinstance(value, int):
        return value
    text = cell_text(value)
    match = _INT_PREFIX_RE.match(text)
    return int(match.group()) if match else text


def to_decimal(value: Any) -> Any:
    if isinstance(value, bool):
        return cell_text(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = cell_text(value)
    match = _FLOAT_PREFIX_RE.match(text)
    return float(match.group()) if match else text


def to_iso_date(value: Any) -> Any:
    parsed = try_parse_date(value)
    if parsed is None:
        return cell_text(value)
    return to_iso_string(parsed)


def to_boolean(value: Any) -> bool:
    return value is True or cell_text(value).strip().lower() == "si"


def to_text(value: Any) -> str:
    return cell_text(value)


def to_date_range(value: Any) -> Any:
    """Arreglo JSON de dos fechas; cualquier otra cosa queda como texto"""
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False, default=str)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    text = cell_text(value)
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if isinstance(parsed, list) and len(parsed) == 2:
        return parsed
    return text


def passthrough(value: Any) -> Any:
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    return value


COERCERS: Dict[str, Callable[[Any], Any]] = {
    DataType.ENTERO.value: to_integer,
    DataType.DECIMAL.value: to_decimal,
    DataType.PORCENTAJE.value: to_decimal,
    DataType.FECHA.value: to_iso_date,
    DataType.TRUE_FALSE.value: to_boolean,
    DataType.TEXTO_CORTO.value: to_text,
    DataType.TEXTO_LARGO.value: to_text,
    DataType.RANGO_FECHAS.value: to_date_range,
}


def coerce_value(datatype: str, value: Any) -> Any:
    """Tipos desconocidos (y Link) pasan sin conversión"""
    return COERCERS.get(datatype, passthrough)(value)


def sanitize_value(value: Any) -> Any:
    """Deja el valor serializable a JSON: objetos a texto, fechas a ISO"""
    if isinstance(value, list):
        return [sanitize_value(item) if not isinstance(item, (dict, list)) else cell_text(item) for item in value]
    if isinstance(value, dict):
        return cell_text(value)
    if isinstance(value, (datetime, date)):
        return cell_text(value)
    return value
