from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from enum import Enum
import logging

logger = logging.getLogger(__name__)

# Separador usado en validate_with: "<validador> - <columna>"
REFERENCE_SEPARATOR = " - "

# Un registro es un diccionario nombre de campo -> valor
Record = Dict[str, Any]


class DataType(str, Enum):
    """Tipos de dato de los campos de una plantilla"""
    ENTERO = "Entero"
    DECIMAL = "Decimal"
    PORCENTAJE = "Porcentaje"
    TEXTO_CORTO = "Texto Corto"
    TEXTO_LARGO = "Texto Largo"
    TRUE_FALSE = "True/False"
    FECHA = "Fecha"
    RANGO_FECHAS = "Fecha Inicial / Fecha Final"
    LINK = "Link"


DATE_TYPES = (DataType.FECHA, DataType.RANGO_FECHAS)


@dataclass(frozen=True)
class ValidatorReference:
    """
    Referencia textual a la columna de un validador.

    El texto almacenado en las plantillas es "<validador> - <columna>"; no es una
    llave foránea, por eso la resolución contra el registro es siempre best-effort.
    """
    validator_name: str
    column_name: str = ""

    @classmethod
    def parse(cls, raw: Any) -> Optional["ValidatorReference"]:
        if raw is None:
            return None
        text = raw if isinstance(raw, str) else str(raw)
        parts = text.split(REFERENCE_SEPARATOR)
        validator_name = parts[0].strip()
        if not validator_name:
            return None
        column_name = REFERENCE_SEPARATOR.join(parts[1:]).strip()
        return cls(validator_name=validator_name, column_name=column_name)

    def __str__(self) -> str:
        if not self.column_name:
            return self.validator_name
        return f"{self.validator_name}{REFERENCE_SEPARATOR}{self.column_name}"


class TemplateField(BaseModel):
    """Campo individual de una plantilla"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Nombre del campo (encabezado de la columna)")
    datatype: str = Field(DataType.TEXTO_CORTO.value, description="Tipo de dato del campo")
    required: bool = Field(False, description="Si el campo es obligatorio")
    multiple: bool = Field(False, description="Si admite varios valores separados por coma")
    validate_with: Optional[str] = Field(None, description="Referencia '<validador> - <columna>'")
    comment: Optional[str] = Field(None, description="Texto de ayuda para quien diligencia")

    @field_validator("validate_with", mode="before")
    @classmethod
    def _flatten_validate_with(cls, value: Any) -> Any:
        # Algunas plantillas antiguas guardan el validador como objeto {name: ...}
        if isinstance(value, dict):
            return value.get("name") or None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("multiple", "required", mode="before")
    @classmethod
    def _none_as_false(cls, value: Any) -> Any:
        return bool(value) if value is not None else False

    @property
    def reference(self) -> Optional[ValidatorReference]:
        return ValidatorReference.parse(self.validate_with)

    @property
    def is_date(self) -> bool:
        return self.datatype in DATE_TYPES


class ValidatorColumn(BaseModel):
    """Columna de un validador; `values` está alineado posicionalmente con las demás columnas"""
    name: str
    is_validator: bool = False
    values: List[Any] = Field(default_factory=list)


class Validator(BaseModel):
    """
    Tabla de consulta con nombre (catálogo de códigos).

    Llega en dos formas equivalentes: por columnas (`columns`, endpoint de
    validadores) o por filas (`values`, embebido en las plantillas publicadas).
    Se completan mutuamente preservando la alineación por índice.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    name: str
    columns: List[ValidatorColumn] = Field(default_factory=list)
    values: List[Dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _sync_shapes(self) -> "Validator":
        if self.columns and not self.values:
            self.values = self._rows_from_columns(self.columns)
        elif self.values and not self.columns:
            self.columns = self._columns_from_rows(self.values)
        return self

    @staticmethod
    def _rows_from_columns(columns: List[ValidatorColumn]) -> List[Dict[str, Any]]:
        total = max((len(col.values) for col in columns), default=0)
        rows = []
        for index in range(total):
            rows.append({
                col.name: col.values[index] if index < len(col.values) else None
                for col in columns
            })
        return rows

    @staticmethod
    def _columns_from_rows(rows: List[Dict[str, Any]]) -> List[ValidatorColumn]:
        names: List[str] = []
        for row in rows:
            for key in (row or {}).keys():
                if key not in names:
                    names.append(key)
        return [
            ValidatorColumn(name=name, values=[(row or {}).get(name) for row in rows])
            for name in names
        ]

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    def identifier_column(self) -> Optional[ValidatorColumn]:
        return next((col for col in self.columns if col.is_validator is True), None)


class Template(BaseModel):
    """Plantilla: lista ordenada de campos más metadatos"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    name: str = Field(..., description="Nombre de la plantilla")
    file_name: Optional[str] = Field(None, description="Nombre del archivo descargable")
    file_description: Optional[str] = None
    fields: List[TemplateField] = Field(default_factory=list)
    validators: List[Validator] = Field(default_factory=list)
    active: bool = True
    published: bool = False
    producers: List[Any] = Field(default_factory=list)
    dimensions: List[Any] = Field(default_factory=list)
    created_by: Optional[Dict[str, Any]] = None

    @property
    def field_names(self) -> List[str]:
        return [field.name for field in self.fields]

    def get_field(self, name: str) -> Optional[TemplateField]:
        return next((field for field in self.fields if field.name == name), None)


class PublishedTemplate(BaseModel):
    """Plantilla publicada en un periodo para que las dependencias la diligencien"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    name: str = ""
    template: Template
    validators: List[Validator] = Field(default_factory=list)
    deadline: Optional[datetime] = None
    producers_dep_code: List[str] = Field(default_factory=list)

    @property
    def all_validators(self) -> List[Validator]:
        """Validadores de la publicación o, en su defecto, los de la plantilla"""
        return self.validators or self.template.validators
