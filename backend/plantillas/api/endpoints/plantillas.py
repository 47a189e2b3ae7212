"""
Endpoints de plantillas publicadas: descarga, carga, filtros y consolidados.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from plantillas.api.deps import get_template_service, get_upload_service
from plantillas.config.settings import settings
from plantillas.core import BackendError, ErrorCodes
from plantillas.models.filters import FilterDefinition
from plantillas.modules.prefs import prefs
from plantillas.services.template_service import TemplateService
from plantillas.services.upload_service import UploadService

router = APIRouter()
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class TemplateIdsPayload(BaseModel):
    pub_tem_ids: List[str] = Field(..., min_length=1)
    email: Optional[str] = None


class FilterConfigPayload(BaseModel):
    config: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


def _xlsx_response(file_name: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


def _backend_failure(e: BackendError) -> HTTPException:
    logger.error(f"Error comunicando con el backend: {e}")
    return HTTPException(status_code=502, detail=e.to_dict())


@router.get("/{pub_tem_id}/descarga")
async def download_blank_template(pub_tem_id: str, service: TemplateService = Depends(get_template_service)):
    """Plantilla en blanco con listas desplegables y hoja Guía."""
    try:
        file_name, content = await service.download_blank(pub_tem_id)
    except BackendError as e:
        raise _backend_failure(e)
    return _xlsx_response(file_name, content)


@router.get("/{pub_tem_id}/datos")
async def download_template_data(
    request: Request,
    pub_tem_id: str,
    email: str = Query(...),
    service: TemplateService = Depends(get_template_service),
):
    """Plantilla con los datos cargados; los demás query params se envían como filtros."""
    filters = {
        key: request.query_params.getlist(key)
        for key in request.query_params.keys()
        if key != "email"
    }
    try:
        file_name, content = await service.download_with_data(pub_tem_id, email, filters)
    except BackendError as e:
        raise _backend_failure(e)
    return _xlsx_response(file_name, content)


@router.post("/{pub_tem_id}/carga")
async def upload_template(
    pub_tem_id: str,
    file: UploadFile = File(...),
    email: str = Form(...),
    edit: bool = Form(False),
    end_date: Optional[datetime] = Form(None),
    service: UploadService = Depends(get_upload_service),
):
    """
    Carga un libro diligenciado.

    Returns:
        dict: {"recordsLoaded": n} o 400 con el log de errores por columna.
    """
    content = await file.read()
    if len(content) > settings.UPLOAD_MAX_BYTES:
        raise HTTPException(status_code=413, detail="El archivo supera el tamaño máximo permitido")

    result = await service.upload(pub_tem_id, email, content, edit=edit, deadline=end_date)
    if result.is_success():
        return {"recordsLoaded": result.value}

    status_code = 502 if result.code == ErrorCodes.TRANSPORT_ERROR else 400
    return JSONResponse(
        status_code=status_code,
        content={
            "error": result.error,
            "code": result.code,
            "details": result.details.get("errors", []),
        },
    )


@router.get("/{pub_tem_id}/filtros", response_model=List[FilterDefinition])
async def get_template_filters(
    pub_tem_id: str,
    email: str = Query(...),
    service: TemplateService = Depends(get_template_service),
):
    try:
        return await service.derive_filters(pub_tem_id, email)
    except BackendError as e:
        raise _backend_failure(e)


@router.put("/{pub_tem_id}/filtros/config")
async def save_filter_config(pub_tem_id: str, payload: FilterConfigPayload):
    """Guarda tipo, orden y visibilidad de los filtros de una plantilla."""
    return {"success": True, "config": prefs.set_filter_config(pub_tem_id, payload.config)}


@router.get("/visitadas")
async def get_visited_templates(email: str = Query(...), limit: int = Query(default=10, ge=1, le=100)):
    return {"success": True, "items": prefs.get_visited(email, limit)}


@router.post("/consolidado")
async def download_templates_summary(
    payload: TemplateIdsPayload,
    service: TemplateService = Depends(get_template_service),
):
    try:
        content = await service.summary(payload.pub_tem_ids)
    except BackendError as e:
        raise _backend_failure(e)
    return _xlsx_response("Plantillas.xlsx", content)


@router.post("/combinado")
async def download_combined_data(
    payload: TemplateIdsPayload,
    service: TemplateService = Depends(get_template_service),
):
    if not payload.email:
        raise HTTPException(status_code=422, detail="email requerido")
    content = await service.combined(payload.pub_tem_ids, payload.email)
    return _xlsx_response("Datos_Combinados.xlsx", content)
