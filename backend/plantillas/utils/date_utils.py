from datetime import date, datetime, timezone
from typing import Any, Optional


def try_parse_date(value: Any) -> Optional[datetime]:
    """Fecha desde datetime/date o texto en formatos ISO, DD/MM/AAAA o AAAA/MM/DD."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def to_date_string(value: Any) -> Any:
    """AAAA-MM-DD si el valor es una fecha reconocible; si no, el valor tal cual."""
    parsed = try_parse_date(value)
    if parsed is None:
        return value
    return parsed.strftime("%Y-%m-%d")


def to_iso_string(value: datetime) -> str:
    """ISO 8601 en UTC con milisegundos: 2024-01-15T00:00:00.000Z"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
