import io
import json
import logging
from datetime import date, datetime
from typing import List, Dict, Any, Optional, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from plantillas.config.settings import settings
from plantillas.models.template import DataType, Record, Template, TemplateField, Validator
from plantillas.modules.excel_exporter.data_validation import (
    apply_date_format, build_datatype_validation, build_list_validation, column_range,
)
from plantillas.modules.excel_exporter.help_sheet import apply_field_comment_note, build_help_worksheet
from plantillas.modules.excel_exporter.sheets import (
    resolve_unique_sheet_name, sanitize_sheet_name, should_add_worksheet,
)
from plantillas.modules.excel_exporter.styles import style_header_cell
from plantillas.modules.validators.options import build_validator_options, resolve_field_validator
from plantillas.utils.date_utils import to_date_string
from plantillas.utils.text import to_option_text

logger = logging.getLogger(__name__)

DATA_SHEET_FALLBACK = "Plantilla_1"


def flatten_cell_value(value: Any) -> Any:
    """
    Valor escribible en una celda.

    Objetos: texto o hipervínculo si lo traen, un correo si lo parece, JSON en
    otro caso. Listas (campos múltiples) se unen con coma.
    """
    if value is None or isinstance(value, (str, bool, int, float, datetime, date)):
        return value
    if isinstance(value, dict):
        if "$numberInt" in value:
            return to_option_text(value)
        for key in ("text", "hyperlink"):
            if value.get(key):
                return str(value[key])
        email = next((v for v in value.values() if isinstance(v, str) and "@" in v), None)
        if email:
            return email
        return json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(flatten_cell_value(item)) for item in value if item is not None)
    return str(value)


def is_empty_record(record: Record) -> bool:
    return all(value is None or value in ("", "null") for value in (record or {}).values())


class TemplateExcelExporter:
    """Genera el libro de una plantilla: hoja Guía, hoja de datos con reglas y hojas de validadores"""

    def __init__(self, include_help: bool = True):
        self.include_help = include_help
        self.workbook: Optional[Workbook] = None
        self.worksheet: Optional[Worksheet] = None

    def export_template(
        self,
        template: Template,
        validators: Sequence[Validator] = (),
        records: Optional[List[Record]] = None,
        include_validator_sheets: bool = False,
    ) -> bytes:
        """
        Exportar una plantilla a Excel

        Args:
            template: Plantilla con la lista ordenada de campos
            validators: Validadores referenciados por la plantilla
            records: Registros a volcar (vacío = plantilla en blanco)
            include_validator_sheets: Agregar una hoja por validador

        Returns:
            bytes: Archivo Excel generado
        """
        try:
            self.workbook = Workbook()
            self.workbook.remove(self.workbook.active)

            if self.include_help:
                build_help_worksheet(self.workbook, template.fields)

            sheet_name = resolve_unique_sheet_name(self.workbook, template.name, DATA_SHEET_FALLBACK)
            self.worksheet = self.workbook.create_sheet(sheet_name)
            self.workbook.active = self.workbook.sheetnames.index(sheet_name)

            self._write_headers(template.fields)
            self._apply_field_rules(template.fields, validators)
            written = self._write_data(template.fields, records or [])

            if include_validator_sheets:
                self._write_validator_sheets(validators)

            self._apply_formatting(self.worksheet)

            buffer = io.BytesIO()
            self.workbook.save(buffer)
            buffer.seek(0)

            logger.info(f"Excel generado para plantilla '{template.name}' con {written} registros")
            return buffer.getvalue()

        except Exception as e:
            logger.error(f"Error generando Excel de plantilla '{template.name}': {e}")
            raise

    def _write_headers(self, fields: Sequence[TemplateField]) -> None:
        for col_idx, field in enumerate(fields, 1):
            cell = self.worksheet.cell(row=1, column=col_idx, value=field.name)
            style_header_cell(cell)
            apply_field_comment_note(cell, field.comment)
        self.worksheet.freeze_panes = "A2"

    def _apply_field_rules(self, fields: Sequence[TemplateField], validators: Sequence[Validator]) -> None:
        """
        Una regla por columna: la lista del validador si existe (y el campo no es
        múltiple), si no la regla del tipo de dato.
        """
        for col_idx, field in enumerate(fields, 1):
            validation = None
            if not field.multiple:
                validation = self._validator_dropdown(field, validators)
            if validation is None:
                validation = build_datatype_validation(field)

            if validation is not None:
                self.worksheet.add_data_validation(validation)
                validation.add(column_range(col_idx))

            if field.is_date:
                apply_date_format(self.worksheet, col_idx)

    def _validator_dropdown(self, field: TemplateField, validators: Sequence[Validator]):
        resolved = resolve_field_validator(field, validators)
        if resolved is None:
            return None
        validator, reference = resolved
        options = build_validator_options(validator, reference.column_name)
        if not options:
            logger.debug(f"Validador '{validator.name}' sin opciones para el campo '{field.name}'")
            return None
        return build_list_validation(self.workbook, options, field)

    def _write_data(self, fields: Sequence[TemplateField], records: List[Record]) -> int:
        # Las columnas de fecha ya tienen celdas formateadas, no se puede usar append()
        current_row = 2
        for record in records:
            if is_empty_record(record):
                continue
            for col_idx, field in enumerate(fields, 1):
                value = record.get(field.name)
                if field.datatype == DataType.RANGO_FECHAS and isinstance(value, (list, tuple)):
                    # se lee de vuelta como arreglo JSON
                    value = json.dumps([to_date_string(item) for item in value], ensure_ascii=False, default=str)
                elif field.is_date and value:
                    value = to_date_string(value)
                self.worksheet.cell(row=current_row, column=col_idx, value=flatten_cell_value(value))
            current_row += 1
        return current_row - 2

    def _write_validator_sheets(self, validators: Sequence[Validator]) -> None:
        for validator in validators:
            sheet_name = sanitize_sheet_name(validator.name)
            if not sheet_name or not should_add_worksheet(self.workbook, sheet_name):
                continue
            sheet = self.workbook.create_sheet(sheet_name)
            for col_idx, column in enumerate(validator.columns, 1):
                style_header_cell(sheet.cell(row=1, column=col_idx, value=column.name))
                for row_idx, value in enumerate(column.values, 2):
                    sheet.cell(row=row_idx, column=col_idx, value=flatten_cell_value(value))
            self._apply_formatting(sheet)

    def _apply_formatting(self, worksheet: Worksheet) -> None:
        for col_idx in range(1, worksheet.max_column + 1):
            worksheet.column_dimensions[get_column_letter(col_idx)].width = settings.COLUMN_WIDTH


def export_template(
    template: Template,
    validators: Sequence[Validator] = (),
    records: Optional[List[Record]] = None,
    include_help: bool = True,
    include_validator_sheets: bool = False,
) -> bytes:
    exporter = TemplateExcelExporter(include_help=include_help)
    return exporter.export_template(template, validators, records, include_validator_sheets)
