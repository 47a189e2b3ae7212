import re
import unicodedata
from typing import Any


_SPACES_RE = re.compile(r"\s+")
_EDGE_QUOTES_RE = re.compile(r'^"+|"+$')


def remove_accents(value: str) -> str:
    """Remueve acentos (NFD + descarte de marcas combinantes)."""
    if not value:
        return ""
    nfkd_form = unicodedata.normalize("NFD", str(value))
    return "".join(c for c in nfkd_form if not unicodedata.combining(c))


def normalize_token(value: Any) -> str:
    """
    Normaliza nombres y etiquetas para comparaciones laxas:
    - sin acentos
    - espacios colapsados
    - mayúsculas
    """
    if value is None:
        return ""
    text = remove_accents(str(value))
    return _SPACES_RE.sub(" ", text).strip().upper()


def to_option_text(value: Any) -> str:
    """Texto de un valor de validador; desenvuelve enteros estilo Mongo ({"$numberInt": "5"})."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict) and "$numberInt" in value:
        inner = value.get("$numberInt")
        return str(inner if inner is not None else "").strip()
    return str(value).strip()


def normalize_multiline(text: Any) -> str:
    """CRLF/CR -> LF y recorte de extremos."""
    if not text:
        return ""
    return str(text).replace("\r\n", "\n").replace("\r", "\n").strip()


def clean_comment(text: Any) -> str:
    """Comentario normalizado y sin comillas envolventes."""
    return _EDGE_QUOTES_RE.sub("", normalize_multiline(text))


def wrap_text_by_length(text: Any, max_len: int = 52) -> str:
    """Parte cada párrafo en líneas de hasta max_len caracteres sin cortar palabras."""
    source = normalize_multiline(text)
    if not source:
        return ""

    wrapped_lines = []
    for paragraph in source.split("\n"):
        words = paragraph.split()
        if not words:
            wrapped_lines.append("")
            continue

        line = ""
        for word in words:
            candidate = f"{line} {word}" if line else word
            if len(candidate) > max_len and line:
                wrapped_lines.append(line)
                line = word
            else:
                line = candidate
        if line:
            wrapped_lines.append(line)

    return "\n".join(wrapped_lines)


def estimate_row_height(text: Any, minimum: int = 22) -> int:
    """Alto de fila aproximado: 16 puntos por línea."""
    line_count = max(1, len(normalize_multiline(text).split("\n")))
    return max(minimum, line_count * 16)


def truncate_prompt(text: Any, max_chars: int = 220) -> str:
    """Mensaje de entrada corto; si se recorta, remite a la hoja Guía."""
    normalized = normalize_multiline(text)
    base = normalized[:max_chars]
    if len(normalized) > max_chars:
        return f"{base}... (ver hoja Guia)"
    return base
