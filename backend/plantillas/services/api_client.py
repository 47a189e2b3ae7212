import httpx
import logging
from typing import Dict, Any, Optional, List

from plantillas.config.settings import settings
from plantillas.core.exceptions import BackendValidationError, TransportError
from plantillas.models.import_log import parse_error_details

logger = logging.getLogger(__name__)


class ReportesApiClient:
    """
    Cliente del backend de reportes (API REST externa).

    Sin reintentos automáticos: un fallo de red se registra y se propaga como
    TransportError para que quien llama aborte la operación.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT
        # Permite inyectar httpx.MockTransport en pruebas
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Helper para enviar requests al backend y normalizar errores"""
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
                if response.status_code == 400:
                    body = self._safe_json(response)
                    details = body.get("details") if isinstance(body, dict) else None
                    if isinstance(details, list):
                        logger.warning(f"Backend rechazó {method} {path}: {len(details)} columnas con errores")
                        raise BackendValidationError(
                            body.get("message") or "Error de validación en el backend",
                            [entry.model_dump(by_alias=True) for entry in parse_error_details(details)],
                        )
                response.raise_for_status()
                return self._safe_json(response)
            except httpx.HTTPStatusError as e:
                logger.error(f"HTTP Error en {method} {path}: {e.response.status_code} {e.response.text[:200]}")
                raise TransportError(
                    f"El backend respondió {e.response.status_code}",
                    details={"status": e.response.status_code, "path": path},
                    cause=e,
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"Error de red en {method} {path}: {e}")
                raise TransportError(f"No se pudo contactar el backend: {e}", details={"path": path}, cause=e) from e

    @staticmethod
    def _safe_json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"data": data}

    async def get_validators_page(self, page: int, limit: int) -> List[Dict[str, Any]]:
        """GET /validators/pagination?page&limit -> {validators: [...]}"""
        data = await self._request("GET", "/validators/pagination", params={"page": page, "limit": limit})
        validators = data.get("validators")
        return validators if isinstance(validators, list) else []

    async def get_template(self, pub_tem_id: str) -> Dict[str, Any]:
        """GET /pTemplates/template/:id -> {name, template: {fields, validators}}"""
        return await self._request("GET", f"/pTemplates/template/{pub_tem_id}")

    async def load_producer_data(self, email: str, pub_tem_id: str, data: List[Dict[str, Any]],
                                 edit: bool = False) -> int:
        """
        PUT /pTemplates/producer/load

        Envía el lote completo; el backend lo acepta o lo rechaza entero.
        Returns:
            int: registros cargados según el backend
        """
        payload = {
            "email": email,
            "pubTem_id": pub_tem_id,
            "data": data,
            "edit": edit,
        }
        result = await self._request("PUT", "/pTemplates/producer/load", json=payload)
        try:
            return int(result.get("recordsLoaded", len(data)))
        except (TypeError, ValueError):
            return len(data)

    async def get_merged_data(self, pub_tem_id: str, email: str,
                              filters: Optional[Dict[str, List[str]]] = None) -> List[Dict[str, Any]]:
        """GET /pTemplates/dimension/mergedData -> {data: [...]}"""
        params: Dict[str, Any] = {"pubTem_id": pub_tem_id, "email": email}
        for key, values in (filters or {}).items():
            if values:
                params[key] = ",".join(values)
        data = await self._request("GET", "/pTemplates/dimension/mergedData", params=params)
        rows = data.get("data")
        return rows if isinstance(rows, list) else []
