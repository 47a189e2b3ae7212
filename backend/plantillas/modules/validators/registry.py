"""
Registro de validadores: caché en memoria de las tablas de consulta.

Se construye una vez al iniciar la aplicación y se inyecta en los códecs y en
la derivación de filtros. Ninguna operación de resolución lanza excepciones:
ante cualquier faltante se devuelve el valor literal.
"""
import asyncio
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from plantillas.config.settings import settings
from plantillas.core.exceptions import BackendError
from plantillas.models.filters import FilterOption
from plantillas.models.template import Validator, ValidatorColumn
from plantillas.modules.validators.mappings import lookup_validator_name
from plantillas.modules.validators.options import find_validator
from plantillas.utils.text import normalize_token, to_option_text

logger = logging.getLogger(__name__)

_YES_NO_RE = re.compile(r"^[SN]$")
_SHORT_CODE_RE = re.compile(r"^\d{1,3}$")
_COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2}$")

# Fragmentos que delatan una columna descriptiva en el validador
DESCRIPTION_HINTS = ("DESCRIPCION", "NOMBRE", "DESC", "CONVENIO", "ACTIVIDAD", "ACADEMICO", "ESTIMULO")


def is_yes_no_batch(values: Sequence[str]) -> bool:
    return all(_YES_NO_RE.match(value or "") for value in values)


def is_code_batch(values: Sequence[str]) -> bool:
    """Códigos cortos numéricos (1-3 dígitos) o códigos de país de 2 letras."""
    are_ids = all(_SHORT_CODE_RE.match(value or "") for value in values)
    are_country_codes = all(_COUNTRY_CODE_RE.match(value or "") for value in values)
    return are_ids or are_country_codes


class ValidatorRegistry:
    """Caché de validadores con carga única por sesión"""

    def __init__(self, client=None, page_size: Optional[int] = None, max_pages: Optional[int] = None):
        self.client = client
        self.page_size = page_size or settings.VALIDATORS_PAGE_SIZE
        self.max_pages = max_pages or settings.VALIDATORS_MAX_PAGES
        self._validators: List[Validator] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def validators(self) -> List[Validator]:
        return list(self._validators)

    def set_validators(self, validators: Iterable[Any]) -> None:
        """Carga directa (validadores embebidos en una plantilla o pruebas)"""
        self._validators = [self._coerce(v) for v in validators if v is not None]
        self._validators = [v for v in self._validators if v is not None]
        self._loaded = True

    @staticmethod
    def _coerce(raw: Any) -> Optional[Validator]:
        if isinstance(raw, Validator):
            return raw
        try:
            return Validator.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Validador descartado por formato inválido: {e.error_count()} errores")
            return None

    async def load(self) -> None:
        """
        Descarga todos los validadores paginando una sola vez.

        Idempotente: si ya se cargó no hace nada. Si falla, registra el error y
        deja el registro vacío; quien llama trata "sin validador" como normal.
        """
        if self._loaded:
            return
        if self.client is None:
            logger.warning("ValidatorRegistry sin cliente configurado; se usará vacío")
            return

        async with self._lock:
            # Otra corrutina pudo completar la carga mientras esperábamos
            if self._loaded:
                return
            try:
                collected: List[Validator] = []
                for page in range(1, self.max_pages + 1):
                    batch = await self.client.get_validators_page(page, self.page_size)
                    collected.extend(v for v in (self._coerce(raw) for raw in batch) if v is not None)
                    if len(batch) < self.page_size:
                        break
                self._validators = collected
                self._loaded = True
                logger.info(f"ValidatorRegistry - Cargados {len(collected)} validadores")
            except BackendError as e:
                logger.error(f"ValidatorRegistry - Error cargando validadores: {e}")
                self._validators = []

    def get(self, name: str) -> Optional[Validator]:
        return find_validator(self._validators, name)

    def resolve_validator_name(self, field_name: str) -> Optional[str]:
        """Mapeo exacto campo -> validador; sin heurística de respaldo"""
        return lookup_validator_name(field_name)

    @staticmethod
    def description_column(validator: Validator) -> Optional[ValidatorColumn]:
        for col in validator.columns:
            if col.is_validator:
                continue
            col_name = normalize_token(col.name)
            if any(hint in col_name for hint in DESCRIPTION_HINTS):
                return col
        return None

    @classmethod
    def description_map(cls, validator: Validator) -> Dict[str, str]:
        """
        Mapa código -> descripción por posición.

        El índice i de la columna identificadora siempre se empareja con el
        índice i de la descripción; valores nulos no desplazan el resto.
        """
        id_column = validator.identifier_column()
        desc_column = cls.description_column(validator)
        if id_column is None or desc_column is None or not id_column.values or not desc_column.values:
            return {}

        value_map: Dict[str, str] = {}
        for index, raw_id in enumerate(id_column.values):
            desc = desc_column.values[index] if index < len(desc_column.values) else None
            id_text = to_option_text(raw_id)
            desc_text = to_option_text(desc)
            if id_text and desc_text:
                value_map[id_text] = desc_text
        return value_map

    def enrich_with_validator(self, validator: Validator, values: Sequence[str]) -> List[FilterOption]:
        """Etiqueta "valor - descripción" para cada valor; sin coincidencia queda el valor"""
        value_map = self.description_map(validator)
        if not value_map:
            self._log_missing_columns(validator)
            return [FilterOption(value=value, label=value) for value in values]

        options = []
        for value in values:
            description = value_map.get(value)
            if description:
                options.append(FilterOption(value=value, label=f"{value} - {description}"))
            else:
                logger.debug(f"ValidatorRegistry - Sin descripción para '{value}' en '{validator.name}'")
                options.append(FilterOption(value=value, label=value))
        return options

    def enrich_values(self, field_name: str, values: Sequence[str]) -> List[FilterOption]:
        """
        Enriquece valores observados de un campo con su descripción.

        1. Lote S/N -> "S - Sí" / "N - No".
        2. Si no son códigos cortos ni códigos de país, se devuelven tal cual.
        3. Sin mapeo de validador, tal cual.
        4-5. Mapa posicional código -> descripción; coincidencias parciales permitidas.
        """
        values = [str(value) for value in values]
        basic = [FilterOption(value=value, label=value) for value in values]

        if is_yes_no_batch(values):
            return [
                FilterOption(value=value, label="S - Sí" if value == "S" else "N - No")
                for value in values
            ]

        if not is_code_batch(values):
            return basic

        validator_name = self.resolve_validator_name(field_name)
        if not validator_name:
            logger.debug(f"ValidatorRegistry - Sin mapeo para el campo: {field_name}")
            return basic

        validator = self.get(validator_name)
        if validator is None:
            logger.debug(f"ValidatorRegistry - Validador '{validator_name}' no encontrado")
            return basic

        options = self.enrich_with_validator(validator, values)
        enriched = sum(1 for opt in options if opt.label != opt.value)
        logger.debug(f"ValidatorRegistry - Enriquecidos {enriched}/{len(values)} valores para '{field_name}'")
        return options

    def candidates_for_values(self, values: Sequence[str]) -> List[Validator]:
        """Validadores cuya columna identificadora contiene todos los valores observados"""
        wanted = {str(v) for v in values if v not in (None, "")}
        if not wanted:
            return []
        candidates = []
        for validator in self._validators:
            value_map = self.description_map(validator)
            if value_map and wanted.issubset(value_map.keys()):
                candidates.append(validator)
        return candidates

    def _log_missing_columns(self, validator: Validator) -> None:
        logger.debug(
            f"ValidatorRegistry - Columnas faltantes en '{validator.name}': %s",
            [
                {
                    "name": col.name,
                    "is_validator": col.is_validator,
                    "count": len(col.values),
                    "sample": col.values[:3],
                }
                for col in validator.columns
            ],
        )
