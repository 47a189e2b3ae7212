"""Hoja "Guía" con el comentario de cada campo y notas de encabezado"""
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.comments import Comment
from openpyxl.styles import Font, Alignment
from openpyxl.worksheet.worksheet import Worksheet

from plantillas.config.settings import settings
from plantillas.models.template import TemplateField
from plantillas.modules.excel_exporter.styles import NAVY, colored_border, solid_fill
from plantillas.utils.text import clean_comment, estimate_row_height, wrap_text_by_length

HELP_SHEET_NAME = "Guía"
LONG_COMMENT_NOTE = "Instruccion: selecciona una celda de esta columna para ver el detalle completo."
NOTE_AUTHOR = "Plantillas"


def apply_field_comment_note(cell, raw_comment: Optional[str]) -> None:
    """
    Nota corta sobre el encabezado.

    Las notas de Excel se ven recortadas, así que solo comentarios breves van
    completos; el detalle queda en el mensaje de entrada y en la hoja Guía.
    """
    comment = clean_comment(raw_comment)
    if not comment:
        return
    if len(comment) <= settings.NOTE_MAX_CHARS:
        text = wrap_text_by_length(comment, 44)
    else:
        text = LONG_COMMENT_NOTE
    cell.comment = Comment(text, NOTE_AUTHOR)


def build_help_worksheet(workbook: Workbook, fields: Iterable[TemplateField]) -> Worksheet:
    """Crea la hoja Guía: Campo | Comentario del campo, filas alternadas"""
    sheet = workbook.create_sheet(HELP_SHEET_NAME)
    sheet.column_dimensions["A"].width = 38
    sheet.column_dimensions["B"].width = 120
    sheet.freeze_panes = "A2"

    sheet.append(["Campo", "Comentario del campo"])
    sheet.row_dimensions[1].height = 24
    header_border = colored_border("CBD5E1")
    for cell in sheet[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = solid_fill(NAVY)
        cell.alignment = Alignment(vertical="center", horizontal="center", wrap_text=True)
        cell.border = header_border

    row_border = colored_border("E2E8F0")
    for index, field in enumerate(fields):
        wrapped = wrap_text_by_length(field.comment, 90) if field.comment else ""
        sheet.append([field.name, wrapped])
        row_number = sheet.max_row
        sheet.row_dimensions[row_number].height = estimate_row_height(wrapped, 22)

        name_cell = sheet.cell(row=row_number, column=1)
        comment_cell = sheet.cell(row=row_number, column=2)
        name_cell.font = Font(bold=True, color=NAVY)
        comment_cell.font = Font(color="111827")

        fill = solid_fill("F8FAFC" if index % 2 == 0 else "FFFFFF")
        for cell in (name_cell, comment_cell):
            cell.alignment = Alignment(vertical="top", horizontal="left", wrap_text=True)
            cell.fill = fill
            cell.border = row_border

    return sheet
