"""
Libros consolidados: resumen de plantillas y datos combinados de varias plantillas.
"""
import io
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, Field

from plantillas.models.template import Record, Template, Validator, ValidatorReference
from plantillas.modules.excel_exporter.data_validation import ERROR_TITLE
from plantillas.modules.excel_exporter.styles import HEADER_FILL, HEADER_FONT
from plantillas.modules.validators.options import build_validator_options, find_validator

logger = logging.getLogger(__name__)

OPTIONS_SHEET_NAME = "_OpcionesValidador"
SUMMARY_COLUMN_WIDTH = 30
COMBINED_COLUMN_WIDTH = 25


class TemplateDataResult(BaseModel):
    """Datos de una plantilla para el libro combinado; `error` indica que no se pudieron cargar"""
    template: Template
    records: List[Record] = Field(default_factory=list)
    error: Optional[str] = None


def _style_header_row(worksheet: Worksheet, width: int) -> None:
    for cell in worksheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for col_idx in range(1, worksheet.max_column + 1):
        worksheet.column_dimensions[get_column_letter(col_idx)].width = width


def _save(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()


def _creator_label(template: Template) -> Optional[str]:
    created_by = template.created_by or {}
    return created_by.get("full_name") or created_by.get("email")


def export_templates_summary(templates: Sequence[Template], validators: Sequence[Validator] = ()) -> bytes:
    """
    Resumen de plantillas: hoja "Plantillas" con metadatos y hoja
    "Campos Plantillas" con un renglón por campo. La columna "Respuesta posible"
    ofrece la lista del validador del campo, guardada en _OpcionesValidador.
    """
    workbook = Workbook()
    templates_sheet = workbook.active
    templates_sheet.title = "Plantillas"
    templates_sheet.append(["Plantilla", "Creado Por", "Ambitos", "Campos", "Publicada"])
    for template in templates:
        templates_sheet.append([
            template.name,
            _creator_label(template),
            ", ".join(str(d.get("name", d)) if isinstance(d, dict) else str(d) for d in template.dimensions) or None,
            len(template.fields),
            "Si" if template.published else "No",
        ])
    _style_header_row(templates_sheet, SUMMARY_COLUMN_WIDTH)

    fields_sheet = workbook.create_sheet("Campos Plantillas")
    fields_sheet.append([
        "Plantilla", "Campo", "Tipo de dato", "Requerido", "Validador", "Respuesta posible", "Comentario",
    ])

    # validate_with -> filas que lo usan
    rows_by_reference: Dict[str, List[int]] = {}
    for template in templates:
        for field in template.fields:
            fields_sheet.append([
                template.name,
                field.name,
                field.datatype,
                "Si" if field.required else "No",
                field.validate_with,
                None,
                field.comment,
            ])
            if field.validate_with:
                rows_by_reference.setdefault(field.validate_with, []).append(fields_sheet.max_row)
    _style_header_row(fields_sheet, SUMMARY_COLUMN_WIDTH)

    if rows_by_reference:
        _write_validator_options(workbook, fields_sheet, rows_by_reference, list(validators) or _embedded(templates))

    logger.info(f"Resumen generado con {len(templates)} plantillas")
    return _save(workbook)


def _embedded(templates: Sequence[Template]) -> List[Validator]:
    return [validator for template in templates for validator in template.validators]


def _write_validator_options(
    workbook: Workbook,
    fields_sheet: Worksheet,
    rows_by_reference: Dict[str, List[int]],
    validators: Sequence[Validator],
) -> None:
    options_sheet = workbook.create_sheet(OPTIONS_SHEET_NAME)
    options_sheet.sheet_state = "veryHidden"

    col_idx = 0
    for reference_text in sorted(rows_by_reference):
        reference = ValidatorReference.parse(reference_text)
        validator = find_validator(validators, reference.validator_name) if reference else None
        if validator is None:
            continue
        options = build_validator_options(validator, reference.column_name)
        if not options:
            continue

        col_idx += 1
        letter = get_column_letter(col_idx)
        options_sheet.cell(row=1, column=col_idx, value=reference_text)
        for row, option in enumerate(options, start=2):
            options_sheet.cell(row=row, column=col_idx, value=option)

        validation = DataValidation(
            type="list",
            formula1=f"'{OPTIONS_SHEET_NAME}'!${letter}$2:${letter}${len(options) + 1}",
            allow_blank=True,
            showErrorMessage=True,
            errorTitle=ERROR_TITLE,
            error="Selecciona una respuesta posible de la lista.",
        )
        fields_sheet.add_data_validation(validation)
        for row in rows_by_reference[reference_text]:
            validation.add(f"F{row}")


def _stringify(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def export_combined_data(results: Sequence[TemplateDataResult]) -> bytes:
    """
    Libro "Datos_Combinados": una columna PLANTILLA_ORIGEN más una columna
    "<plantilla>_<campo>" por cada campo de cada plantilla. Cada registro ocupa
    solo las columnas de su plantilla.
    """
    header = ["PLANTILLA_ORIGEN"]
    offsets: List[int] = []
    for result in results:
        offsets.append(len(header))
        header.extend(f"{result.template.name}_{field.name}" for field in result.template.fields)

    rows: List[List[Any]] = []
    for result, offset in zip(results, offsets):
        field_names = result.template.field_names
        if result.error:
            rows.append(_padded([result.template.name, "Error al cargar"], len(header)))
            continue
        if not result.records:
            rows.append(_padded([result.template.name, "Sin datos"], len(header)))
            continue
        for record in result.records:
            row = [result.template.name] + [None] * (len(header) - 1)
            for index, name in enumerate(field_names):
                row[offset + index] = _stringify(record.get(name))
            rows.append(row)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Datos_Combinados"
    sheet.append(header)
    if rows:
        for row in rows:
            sheet.append(_padded(row, len(header)))
    else:
        sheet.append(_padded(["Sin datos disponibles"], len(header)))
    _style_header_row(sheet, COMBINED_COLUMN_WIDTH)

    logger.info(f"Libro combinado generado con {len(results)} plantillas y {len(rows)} filas")
    return _save(workbook)


def _padded(row: List[Any], length: int) -> List[Any]:
    """Completa con None o recorta al largo del encabezado"""
    return (row + [None] * length)[:length]
