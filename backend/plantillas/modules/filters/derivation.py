"""
Derivación de filtros a partir del esquema de una plantilla y sus datos cargados.

El tipo de control se elige por heurística (nombre del campo + cardinalidad)
y las opciones se etiquetan con la descripción del validador cuando existe.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from plantillas.models.filters import FilterDefinition, FilterInputType, FilterOption
from plantillas.models.template import Record, TemplateField, Validator
from plantillas.modules.validators.registry import ValidatorRegistry, is_code_batch
from plantillas.utils.text import normalize_token

logger = logging.getLogger(__name__)

SKIPPED_FIELDS = {"_id", "id", "createdAt", "updatedAt"}
DATE_HINTS = ("FECHA", "DATE", "TIME", "HORA")
CODE_HINTS = (
    "TIPO", "TYPE", "ESTADO", "STATUS", "SEXO", "CIVIL", "FUENTE", "SOURCE",
    "PAIS", "COUNTRY", "MOVILIDAD", "IMPACTO", "ESTRATEGIA",
)
# Palabras sin peso al comparar nombres de campo y validador
STOPWORDS = {"ID", "DE", "DEL", "LA", "EL", "LOS", "LAS", "Y", "EN", "COD", "CODIGO"}

_TOKEN_SPLIT_RE = re.compile(r"[^A-Z0-9]+")
_SHORT_CODE_RE = re.compile(r"^\d{1,3}$")


def name_tokens(name: str) -> List[str]:
    return [token for token in _TOKEN_SPLIT_RE.split(normalize_token(name)) if token]


def keyword_score(field_name: str, validator_name: str) -> int:
    """Cantidad de palabras significativas compartidas entre ambos nombres"""
    field_tokens = set(name_tokens(field_name)) - STOPWORDS
    validator_tokens = set(name_tokens(validator_name)) - STOPWORDS
    return len(field_tokens & validator_tokens)


def best_candidate(field_name: str, candidates: Sequence[Validator]) -> Optional[Validator]:
    """Mayor coincidencia de palabras; con empate gana el primero"""
    if not candidates:
        return None
    best = candidates[0]
    best_score = keyword_score(field_name, best.name)
    for candidate in candidates[1:]:
        score = keyword_score(field_name, candidate.name)
        if score > best_score:
            best, best_score = candidate, score
    return best


def _value_text(value: Any) -> str:
    if isinstance(value, dict):
        text = value.get("text") or value.get("hyperlink")
        return str(text) if text else json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def unique_values(field_name: str, records: Sequence[Record]) -> List[str]:
    seen = set()
    for record in records:
        raw = (record or {}).get(field_name)
        items = raw if isinstance(raw, list) else [raw]
        for item in items:
            if item is None:
                continue
            text = _value_text(item)
            if text:
                seen.add(text)
    return sorted(seen, key=_natural_key)


def _natural_key(value: str):
    return (0, int(value), "") if value.isdigit() else (1, 0, normalize_token(value))


def choose_input_type(field_name: str, values: Sequence[str]) -> FilterInputType:
    tokens = name_tokens(field_name)
    normalized = normalize_token(field_name)
    if any(hint in normalized for hint in DATE_HINTS):
        return FilterInputType.DATE

    looks_like_code = "ID" in tokens or any(hint in normalized for hint in CODE_HINTS)
    if looks_like_code and values and len(values) <= 20 and all(_SHORT_CODE_RE.match(v) for v in values):
        return FilterInputType.RADIO

    if len(values) <= 5:
        return FilterInputType.RADIO
    if len(values) <= 10:
        return FilterInputType.DROPDOWN
    return FilterInputType.AUTOCOMPLETE


class FilterDerivation:
    """Construye las definiciones de filtro de una plantilla"""

    def __init__(self, registry: ValidatorRegistry):
        self.registry = registry

    def derive(self, fields: Sequence[TemplateField], records: Sequence[Record],
               overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> List[FilterDefinition]:
        """
        Un filtro por campo de la plantilla (salvo llaves internas).

        `overrides` es la configuración guardada por plantilla:
        {campo: {"input_type", "order", "is_visible", "label"}}.
        """
        overrides = overrides or {}
        definitions: List[FilterDefinition] = []
        for index, field in enumerate(fields):
            if field.name in SKIPPED_FIELDS:
                continue
            values = unique_values(field.name, records)
            input_type = choose_input_type(field.name, values)
            options = [] if input_type == FilterInputType.DATE else self.options_for(field.name, values)

            definition = FilterDefinition(
                field_name=field.name,
                label=field.name,
                input_type=input_type,
                options=options,
                order=index,
            )
            custom = overrides.get(field.name)
            if custom:
                definition = FilterDefinition.model_validate({
                    **definition.model_dump(),
                    **{key: value for key, value in custom.items()
                       if key in ("label", "input_type", "order", "is_visible")},
                })
            definitions.append(definition)

        definitions.sort(key=lambda d: d.order)
        logger.info(f"Filtros derivados: {len(definitions)} campos, {len(records)} registros")
        return definitions

    def options_for(self, field_name: str, values: Sequence[str]) -> List[FilterOption]:
        """
        Opciones etiquetadas. Si el mapeo por nombre no enriquece nada y los
        valores son códigos, se busca un validador que los contenga a todos.
        """
        if not values:
            return []
        options = self.registry.enrich_values(field_name, values)
        if any(option.label != option.value for option in options):
            return options
        if not is_code_batch(values):
            return options

        candidates = self.registry.candidates_for_values(values)
        validator = best_candidate(field_name, candidates)
        if validator is None:
            return options
        logger.debug(f"Filtro '{field_name}' resuelto por coincidencia de valores con '{validator.name}'")
        return self.registry.enrich_with_validator(validator, values)
