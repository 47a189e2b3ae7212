from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from plantillas.config.settings import settings

logger = logging.getLogger(__name__)

_LOCK = threading.Lock()
_ALLOWED_FILTER_KEYS = ("label", "input_type", "order", "is_visible")
VISITED_HISTORY_LIMIT = 100


def _prefs_path() -> str:
    return settings.PREFS_PATH


def _ensure_dir(path: str) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)


def _read_all() -> Dict[str, Any]:
    path = _prefs_path()
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Preferencias ilegibles en {path}, se ignoran: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _write_all(data: Dict[str, Any]) -> None:
    path = _prefs_path()
    _ensure_dir(path)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
    os.replace(tmp, path)


def get_filter_config(template_id: str) -> Dict[str, Dict[str, Any]]:
    """Configuración de filtros guardada para una plantilla: {campo: {...}}"""
    with _LOCK:
        node = _read_all().get("filter_config", {})
        config = node.get(template_id) if isinstance(node, dict) else None
        return config if isinstance(config, dict) else {}


def set_filter_config(template_id: str, config: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    cleaned = {
        field: {key: value for key, value in (entry or {}).items() if key in _ALLOWED_FILTER_KEYS}
        for field, entry in (config or {}).items()
    }
    with _LOCK:
        data = _read_all()
        node = data.get("filter_config")
        if not isinstance(node, dict):
            node = {}
        node[template_id] = cleaned
        data["filter_config"] = node
        _write_all(data)
    return cleaned


def mark_visited(email: str, template_id: str) -> Dict[str, Any]:
    """Registra la última visita de un usuario a una plantilla"""
    entry = {"template_id": template_id, "visited_at": datetime.now(timezone.utc).isoformat()}
    with _LOCK:
        data = _read_all()
        visited = data.get("visited")
        if not isinstance(visited, dict):
            visited = {}
        history = [item for item in visited.get(email, []) if item.get("template_id") != template_id]
        visited[email] = ([entry] + history)[:VISITED_HISTORY_LIMIT]
        data["visited"] = visited
        _write_all(data)
    return entry


def get_visited(email: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    with _LOCK:
        visited = _read_all().get("visited", {})
        history = visited.get(email, []) if isinstance(visited, dict) else []
    return history[:limit] if limit else history
