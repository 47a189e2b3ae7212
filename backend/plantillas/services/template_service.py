"""
Servicios de plantillas publicadas: descarga (en blanco o con datos),
filtros derivados y resumen consolidado.
"""
import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from plantillas.models.filters import FilterDefinition
from plantillas.models.template import PublishedTemplate, Template, Validator
from plantillas.modules.excel_exporter.summary_exporter import (
    TemplateDataResult, export_combined_data, export_templates_summary,
)
from plantillas.modules.excel_exporter.template_exporter import export_template
from plantillas.modules.filters.derivation import FilterDerivation
from plantillas.modules.prefs import prefs
from plantillas.modules.validators.registry import ValidatorRegistry
from plantillas.core.exceptions import BackendError
from plantillas.services.api_client import ReportesApiClient

logger = logging.getLogger(__name__)

_FILE_NAME_RE = re.compile(r"[^\w\-. ]+")


def parse_published_template(payload: Dict[str, Any], pub_tem_id: Optional[str] = None) -> PublishedTemplate:
    """Respuesta de /pTemplates/template/:id -> PublishedTemplate"""
    template_data = dict(payload.get("template") or {})
    template_data.setdefault("name", payload.get("name") or "")
    validators = template_data.get("validators") or payload.get("validators") or []
    deadline = payload.get("deadline") or (payload.get("period") or {}).get("producer_end_date")
    return PublishedTemplate.model_validate({
        "_id": payload.get("_id") or pub_tem_id,
        "name": payload.get("name") or template_data["name"],
        "template": template_data,
        "validators": validators,
        "deadline": deadline,
    })


def workbook_file_name(template: Template, suffix: str = "") -> str:
    base = _FILE_NAME_RE.sub("", template.file_name or template.name or "plantilla").strip() or "plantilla"
    return f"{base}{suffix}.xlsx"


class TemplateService:
    """Operaciones de lectura sobre plantillas publicadas"""

    def __init__(self, client: ReportesApiClient, registry: ValidatorRegistry):
        self.client = client
        self.registry = registry

    async def get_published(self, pub_tem_id: str) -> PublishedTemplate:
        payload = await self.client.get_template(pub_tem_id)
        return parse_published_template(payload, pub_tem_id)

    async def download_blank(self, pub_tem_id: str) -> Tuple[str, bytes]:
        published = await self.get_published(pub_tem_id)
        content = export_template(published.template, published.all_validators)
        return workbook_file_name(published.template), content

    async def download_with_data(self, pub_tem_id: str, email: str,
                                 filters: Optional[Dict[str, List[str]]] = None) -> Tuple[str, bytes]:
        """Plantilla + datos consolidados + hojas de validadores (consultas en paralelo)"""
        published, records = await asyncio.gather(
            self.get_published(pub_tem_id),
            self.client.get_merged_data(pub_tem_id, email, filters),
        )
        content = export_template(
            published.template,
            published.all_validators,
            records=records,
            include_validator_sheets=True,
        )
        prefs.mark_visited(email, pub_tem_id)
        return workbook_file_name(published.template, "_datos"), content

    async def derive_filters(self, pub_tem_id: str, email: str) -> List[FilterDefinition]:
        published, records, _ = await asyncio.gather(
            self.get_published(pub_tem_id),
            self.client.get_merged_data(pub_tem_id, email),
            self.registry.load(),
        )
        derivation = FilterDerivation(self.registry)
        return derivation.derive(published.template.fields, records, prefs.get_filter_config(pub_tem_id))

    async def summary(self, pub_tem_ids: Sequence[str]) -> bytes:
        published = await asyncio.gather(*(self.get_published(pub_tem_id) for pub_tem_id in pub_tem_ids))
        await self.registry.load()
        templates = [item.template for item in published]
        validators: List[Validator] = self.registry.validators or [
            validator for item in published for validator in item.all_validators
        ]
        return export_templates_summary(templates, validators)

    async def combined(self, pub_tem_ids: Sequence[str], email: str) -> bytes:
        """Datos de varias plantillas en una sola hoja; una plantilla que falla no aborta el resto"""
        results = await asyncio.gather(*(self._load_template_data(pid, email) for pid in pub_tem_ids))
        return export_combined_data([result for result in results if result is not None])

    async def _load_template_data(self, pub_tem_id: str, email: str) -> Optional[TemplateDataResult]:
        try:
            published = await self.get_published(pub_tem_id)
        except BackendError as e:
            logger.error(f"No se pudo obtener la plantilla {pub_tem_id}: {e}")
            return None
        try:
            records = await self.client.get_merged_data(pub_tem_id, email)
        except BackendError as e:
            logger.error(f"Error cargando datos de '{published.template.name}': {e}")
            return TemplateDataResult(template=published.template, error=str(e))
        return TemplateDataResult(template=published.template, records=records)

