from typing import List
from pydantic import BaseModel, Field
from enum import Enum


class FilterInputType(str, Enum):
    """Control de UI sugerido para un filtro"""
    DROPDOWN = "dropdown"
    RADIO = "radio"
    AUTOCOMPLETE = "autocomplete"
    MULTISELECT = "multiselect"
    DATE = "date"


class FilterOption(BaseModel):
    value: str
    label: str


class FilterDefinition(BaseModel):
    """Filtro derivado de un campo de plantilla y los datos cargados"""
    field_name: str
    label: str = ""
    input_type: FilterInputType = FilterInputType.DROPDOWN
    options: List[FilterOption] = Field(default_factory=list)
    order: int = 0
    is_visible: bool = True
