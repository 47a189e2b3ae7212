"""
Reglas de validación de datos de Excel por tipo de campo.

Cada regla cubre el rango de la columna desde la fila 2 hasta la última fila
configurada (VALIDATION_MAX_ROWS). Los campos con validador usan en cambio una
lista desplegable respaldada por la hoja oculta _Listas.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.datetime import to_excel
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

from plantillas.config.settings import settings
from plantillas.models.template import DataType, TemplateField
from plantillas.utils.text import clean_comment, truncate_prompt

logger = logging.getLogger(__name__)

LISTS_SHEET_NAME = "_Listas"
ERROR_TITLE = "Valor no valido"
LIST_ERROR = "Selecciona un valor de la lista desplegable."
MAX_NUMBER = "9999999999999999999999999999999"
DATE_FORMAT = "DD/MM/YYYY"

_MIN_DATE = str(int(to_excel(datetime(1900, 1, 1))))
_MAX_DATE = str(int(to_excel(datetime(9999, 12, 31))))

# datatype -> parámetros de DataValidation
DATATYPE_RULES: Dict[str, dict] = {
    DataType.ENTERO.value: {
        "type": "whole", "operator": "between", "formula1": "1", "formula2": MAX_NUMBER,
        "error": "Por favor, introduce un numero entero.",
    },
    DataType.DECIMAL.value: {
        "type": "decimal", "operator": "between", "formula1": "0.0", "formula2": MAX_NUMBER,
        "error": "Por favor, introduce un numero decimal.",
    },
    DataType.PORCENTAJE.value: {
        "type": "decimal", "operator": "between", "formula1": "0.0", "formula2": "100.0",
        "error": "Por favor, introduce un numero decimal entre 0.0 y 100.0.",
    },
    DataType.TEXTO_CORTO.value: {
        "type": "textLength", "operator": "lessThanOrEqual", "formula1": "60",
        "error": "Por favor, introduce un texto de hasta 60 caracteres.",
    },
    DataType.TEXTO_LARGO.value: {
        "type": "textLength", "operator": "lessThanOrEqual", "formula1": "500",
        "error": "Por favor, introduce un texto de hasta 500 caracteres.",
    },
    DataType.TRUE_FALSE.value: {
        "type": "list", "formula1": '"Si,No"',
        "error": "Por favor, selecciona Si o No.",
    },
    DataType.FECHA.value: {
        "type": "date", "operator": "between", "formula1": _MIN_DATE, "formula2": _MAX_DATE,
        "error": "Por favor, introduce una fecha valida en el formato DD/MM/AAAA.",
    },
    DataType.RANGO_FECHAS.value: {
        "type": "date", "operator": "between", "formula1": _MIN_DATE, "formula2": _MAX_DATE,
        "error": "Por favor, introduce una fecha valida en el formato DD/MM/AAAA.",
    },
    DataType.LINK.value: {
        "type": "textLength", "operator": "greaterThan", "formula1": "0",
        "error": "Por favor, introduce un enlace valido.",
    },
}


def column_range(column_index: int, max_row: Optional[int] = None) -> str:
    letter = get_column_letter(column_index)
    return f"{letter}2:{letter}{max_row or settings.VALIDATION_MAX_ROWS}"


def build_datatype_validation(field: TemplateField) -> Optional[DataValidation]:
    """Regla para el tipo del campo; None si el tipo no tiene regla"""
    rule = DATATYPE_RULES.get(field.datatype)
    if rule is None:
        return None

    params = dict(rule)
    error = params.pop("error")
    validation = DataValidation(
        allow_blank=True,
        showErrorMessage=True,
        errorTitle=ERROR_TITLE,
        error=error,
        **params,
    )

    apply_field_prompt(validation, field)
    return validation


def apply_field_prompt(validation: DataValidation, field: TemplateField) -> None:
    """Mensaje de entrada con el comentario del campo, si lo tiene"""
    comment = clean_comment(field.comment)
    if comment:
        validation.showInputMessage = True
        validation.promptTitle = field.name[:32]
        validation.prompt = truncate_prompt(comment, settings.PROMPT_MAX_CHARS)


def apply_date_format(worksheet: Worksheet, column_index: int, max_row: Optional[int] = None) -> None:
    for row in range(2, (max_row or settings.VALIDATION_MAX_ROWS) + 1):
        worksheet.cell(row=row, column=column_index).number_format = DATE_FORMAT


def get_lists_sheet(workbook: Workbook) -> Worksheet:
    if LISTS_SHEET_NAME in workbook.sheetnames:
        return workbook[LISTS_SHEET_NAME]
    sheet = workbook.create_sheet(LISTS_SHEET_NAME)
    sheet.sheet_state = "veryHidden"
    return sheet


def _next_free_column(sheet: Worksheet) -> int:
    if sheet.max_column == 1 and sheet.cell(row=1, column=1).value is None:
        return 1
    return sheet.max_column + 1


def build_list_validation(
    workbook: Workbook, options: List[str], field: Optional[TemplateField] = None,
) -> Optional[DataValidation]:
    """
    Escribe las opciones como una columna nueva de _Listas y devuelve la
    lista desplegable que la referencia. Las columnas previas no se pisan.
    Con `field`, la lista muestra además el comentario del campo al seleccionar.
    """
    if not options:
        return None

    sheet = get_lists_sheet(workbook)
    column_index = _next_free_column(sheet)
    for row, option in enumerate(options, start=1):
        sheet.cell(row=row, column=column_index, value=option)

    letter = get_column_letter(column_index)
    formula = f"'{LISTS_SHEET_NAME}'!${letter}$1:${letter}${len(options)}"
    validation = DataValidation(
        type="list",
        formula1=formula,
        allow_blank=True,
        showErrorMessage=True,
        errorTitle=ERROR_TITLE,
        error=LIST_ERROR,
    )
    if field is not None:
        apply_field_prompt(validation, field)
    return validation
