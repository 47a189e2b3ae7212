from fastapi import Request

from plantillas.modules.validators.registry import ValidatorRegistry
from plantillas.services.api_client import ReportesApiClient
from plantillas.services.template_service import TemplateService
from plantillas.services.upload_service import UploadService


def get_api_client(request: Request) -> ReportesApiClient:
    return request.app.state.api_client


def get_registry(request: Request) -> ValidatorRegistry:
    """Registro construido en el arranque de la aplicación (lifespan)"""
    return request.app.state.registry


def get_template_service(request: Request) -> TemplateService:
    return TemplateService(get_api_client(request), get_registry(request))


def get_upload_service(request: Request) -> UploadService:
    return UploadService(get_api_client(request), get_registry(request))
