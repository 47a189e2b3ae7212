"""
Construcción de opciones "código - descripción" a partir de validadores.

Compartido por el exportador (listas desplegables), el importador (búsqueda
inversa etiqueta -> código) y el consolidado de plantillas. Toda la resolución
es best-effort: si algo no calza se devuelve una lista/mapa vacío.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from plantillas.models.template import TemplateField, Validator, ValidatorReference
from plantillas.utils.text import normalize_token, to_option_text


def find_validator(validators: Iterable[Validator], name: str) -> Optional[Validator]:
    """Busca un validador por nombre normalizado."""
    target = normalize_token(name)
    if not target:
        return None
    return next((v for v in validators if normalize_token(v.name) == target), None)


def resolve_value_by_key(row: Dict[str, Any], target_key: str) -> Any:
    if target_key in row:
        return row[target_key]
    normalized_target = normalize_token(target_key)
    matched = next((key for key in row.keys() if normalize_token(key) == normalized_target), None)
    return row[matched] if matched is not None else None


def is_description_key(key: str) -> bool:
    normalized = normalize_token(key)
    return "DESCRIPCION" in normalized or "NOMBRE" in normalized or normalized.startswith("DESC")


def _row_keys(row: Dict[str, Any], preferred_column: str) -> Tuple[Optional[str], Optional[str]]:
    """(llave del código, llave de la descripción) para una fila del validador."""
    keys = list((row or {}).keys())
    if not keys:
        return None, None

    preferred_key = None
    if preferred_column:
        target = normalize_token(preferred_column)
        preferred_key = next((key for key in keys if normalize_token(key) == target), None)
    id_key = preferred_key or keys[0]

    desc_key = next((key for key in keys if key != id_key and is_description_key(key)), None)
    return id_key, desc_key


def iter_code_descriptions(validator: Validator, preferred_column: str = "") -> List[Tuple[str, str]]:
    """Pares (código, descripción) fila a fila; la descripción puede ser vacía."""
    pairs: List[Tuple[str, str]] = []
    for row in validator.values:
        id_key, desc_key = _row_keys(row, preferred_column)
        if id_key is None:
            continue
        id_text = to_option_text(resolve_value_by_key(row, id_key))
        if not id_text:
            continue
        desc_text = to_option_text(resolve_value_by_key(row, desc_key)) if desc_key else ""
        pairs.append((id_text, desc_text))
    return pairs


def build_validator_options(validator: Validator, preferred_column: str = "") -> List[str]:
    """Opciones ordenadas y sin duplicados: "id - descripción" o solo "id"."""
    options: List[str] = []
    seen = set()
    for id_text, desc_text in iter_code_descriptions(validator, preferred_column):
        text = f"{id_text} - {desc_text}" if desc_text else id_text
        if text in seen:
            continue
        seen.add(text)
        options.append(text)
    return options


def build_reverse_lookup(validator: Validator, preferred_column: str = "") -> Dict[str, str]:
    """
    Mapa etiqueta normalizada -> código canónico.

    Acepta el código ("CC"), la descripción ("Cédula de ciudadanía") o la
    combinación ("CC - Cédula de ciudadanía").
    """
    lookup: Dict[str, str] = {}
    for id_text, desc_text in iter_code_descriptions(validator, preferred_column):
        lookup[normalize_token(id_text)] = id_text
        if desc_text:
            lookup[normalize_token(f"{id_text} - {desc_text}")] = id_text
            lookup[normalize_token(desc_text)] = id_text
    return lookup


def resolve_field_validator(
    field: TemplateField,
    validators: Sequence[Validator],
) -> Optional[Tuple[Validator, ValidatorReference]]:
    """Validador referenciado por validate_with, si existe entre los disponibles."""
    reference = field.reference
    if reference is None:
        return None
    validator = find_validator(validators, reference.validator_name)
    if validator is None:
        return None
    return validator, reference
