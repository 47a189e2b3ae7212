import io
import logging
import zipfile
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, Field

from plantillas.core.exceptions import SchemaMismatchError, UnknownColumnsError, WorkbookError
from plantillas.models.import_log import ColumnErrors, RegisterError
from plantillas.models.template import DataType, Record, Template, TemplateField, Validator
from plantillas.modules.excel_exporter.help_sheet import HELP_SHEET_NAME
from plantillas.modules.validators.options import build_reverse_lookup, resolve_field_validator
from plantillas.modules.excel_importer.coercion import cell_text, coerce_value, sanitize_value
from plantillas.utils.text import normalize_token, to_option_text

logger = logging.getLogger(__name__)


class ImportResult(BaseModel):
    """Registros leídos de la hoja de datos del libro"""
    sheet_name: str
    headers: List[str] = Field(default_factory=list)
    records: List[Record] = Field(default_factory=list)


def unknown_columns_log(unknown: Sequence[str], valid: Sequence[str]) -> List[ColumnErrors]:
    valid_text = ", ".join(valid)
    return [
        ColumnErrors(
            column=column,
            errors=[RegisterError(
                register=1,
                message=f"Columna '{column}' no existe en la plantilla. Columnas válidas: {valid_text}",
                value=column,
            )],
        )
        for column in unknown
    ]


class TemplateExcelImporter:
    """Lee un libro diligenciado y lo convierte en registros tipados según la plantilla"""

    def __init__(self, template: Template, validators: Sequence[Validator] = ()):
        self.template = template
        self.fields: Dict[str, TemplateField] = {field.name: field for field in template.fields}
        self.lookups: Dict[str, Dict[str, str]] = {}
        for field in template.fields:
            resolved = resolve_field_validator(field, validators)
            if resolved is not None and not field.multiple:
                validator, reference = resolved
                self.lookups[field.name] = build_reverse_lookup(validator, reference.column_name)

    def import_workbook(self, content: bytes) -> ImportResult:
        """
        Importar el libro

        Raises:
            WorkbookError: el archivo no es un libro válido o no tiene hojas
            UnknownColumnsError: hay encabezados que no son campos de la plantilla
        """
        try:
            workbook = load_workbook(io.BytesIO(content), data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
            logger.error(f"No se pudo leer el libro: {e}")
            raise WorkbookError("El archivo no es un libro de Excel válido", cause=e) from e

        worksheet = self._data_sheet(workbook)

        headers = [cell_text(cell.value) for cell in worksheet[1]] if worksheet.max_row >= 1 else []
        if not any(headers):
            raise SchemaMismatchError("La hoja no tiene encabezados", details={"sheet": worksheet.title})
        self._check_headers(headers)

        records: List[Record] = []
        for row in worksheet.iter_rows(min_row=2):
            if all(cell.value is None for cell in row):
                continue
            record: Record = {}
            for col_idx, cell in enumerate(row):
                key = headers[col_idx] if col_idx < len(headers) else ""
                if not key:
                    continue
                record[key] = self._read_cell(self.fields[key], cell)
            records.append({key: sanitize_value(value) for key, value in record.items()})

        logger.info(f"Importados {len(records)} registros de la hoja '{worksheet.title}'")
        return ImportResult(sheet_name=worksheet.title, headers=[h for h in headers if h], records=records)

    @staticmethod
    def _data_sheet(workbook):
        """Primera hoja visible que no sea la Guía"""
        for sheet in workbook.worksheets:
            if sheet.sheet_state == "visible" and sheet.title != HELP_SHEET_NAME:
                return sheet
        raise WorkbookError("El libro no contiene una hoja de datos")

    def _check_headers(self, headers: Sequence[str]) -> None:
        valid = self.template.field_names
        unknown = [header for header in headers if header and header not in self.fields]
        if unknown:
            logger.warning(f"Columnas desconocidas en '{self.template.name}': {unknown}")
            log = unknown_columns_log(unknown, valid)
            raise UnknownColumnsError(unknown, [entry.model_dump(by_alias=True) for entry in log])

    def _read_cell(self, field: TemplateField, cell: Cell) -> Any:
        value = cell.value
        if value is None:
            return None

        if cell.data_type == "e":
            return f"ERROR: {value}"

        if field.datatype == DataType.LINK.value and cell.hyperlink is not None:
            return cell.hyperlink.target or cell.hyperlink.display or cell_text(value)

        if field.multiple:
            return self._split_multiple(value)

        return coerce_value(field.datatype, self._lookup(field, value))

    def _lookup(self, field: TemplateField, value: Any) -> Any:
        """Etiqueta de lista desplegable -> código canónico del validador"""
        lookup = self.lookups.get(field.name)
        if not lookup:
            return value
        code: Optional[str] = lookup.get(normalize_token(to_option_text(value)))
        return code if code is not None else value

    @staticmethod
    def _split_multiple(value: Any) -> List[str]:
        # Sin conversión de tipo ni búsqueda en el validador: lista de etiquetas
        parts = [part.strip() for part in cell_text(value).split(",")]
        return [part for part in parts if part]


def import_workbook(content: bytes, template: Template, validators: Sequence[Validator] = ()) -> ImportResult:
    return TemplateExcelImporter(template, validators).import_workbook(content)
