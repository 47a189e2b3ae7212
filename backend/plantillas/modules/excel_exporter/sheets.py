import re
from openpyxl import Workbook

MAX_SHEET_NAME = 31
_INVALID_SHEET_CHARS_RE = re.compile(r"[/\\?*\[\]]")


def sanitize_sheet_name(name: str) -> str:
    """Quita /\\?*[] y recorta a 31 caracteres (límite de Excel)."""
    return _INVALID_SHEET_CHARS_RE.sub("", name or "")[:MAX_SHEET_NAME]


def _taken_names(workbook: Workbook) -> set:
    # Excel compara los nombres de hoja sin distinguir mayúsculas
    return {name.casefold() for name in workbook.sheetnames}


def should_add_worksheet(workbook: Workbook, sheet_name: str) -> bool:
    return sheet_name.casefold() not in _taken_names(workbook)


def resolve_unique_sheet_name(workbook: Workbook, raw_name: str, fallback: str) -> str:
    """Nombre saneado y único; colisiones se resuelven con sufijos _1, _2, ..."""
    base = sanitize_sheet_name(raw_name or fallback) or fallback
    taken = _taken_names(workbook)
    candidate = base
    counter = 1
    while candidate.casefold() in taken:
        suffix = f"_{counter}"
        candidate = f"{base[:MAX_SHEET_NAME - len(suffix)]}{suffix}"
        counter += 1
    return candidate
