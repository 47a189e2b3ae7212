"""Estilos compartidos por las hojas generadas"""
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side

NAVY = "0F1F39"

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color=NAVY, end_color=NAVY, fill_type="solid")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")

_thin = Side(style="thin")
THIN_BORDER = Border(left=_thin, right=_thin, top=_thin, bottom=_thin)


def colored_border(color: str) -> Border:
    side = Side(style="thin", color=color)
    return Border(left=side, right=side, top=side, bottom=side)


def solid_fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def style_header_cell(cell) -> None:
    cell.font = HEADER_FONT
    cell.fill = HEADER_FILL
    cell.alignment = HEADER_ALIGNMENT
    cell.border = THIN_BORDER
