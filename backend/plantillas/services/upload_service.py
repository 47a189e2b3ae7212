import asyncio
import logging
from datetime import datetime
from typing import Optional

from plantillas.core import (
    ErrorCodes, Result, failure, failure_from, success,
    BackendValidationError, PlantillasError, UnknownColumnsError, UploadWindowClosedError,
)
from plantillas.modules.excel_importer.template_importer import TemplateExcelImporter
from plantillas.modules.validators.registry import ValidatorRegistry
from plantillas.services.api_client import ReportesApiClient
from plantillas.services.template_service import parse_published_template

logger = logging.getLogger(__name__)

UPLOAD_CLOSED_MESSAGE = "La fecha de carga de plantillas ha culminado."


def is_upload_closed(deadline: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if deadline is None:
        return False
    if now is None:
        now = datetime.now(deadline.tzinfo) if deadline.tzinfo else datetime.now()
    return deadline < now


class UploadService:
    """
    Carga de un libro diligenciado: lectura, conversión y envío en bloque.

    El lote es todo o nada: columnas desconocidas o un rechazo del backend
    devuelven el log de errores por columna y no se acepta ningún registro.
    """

    def __init__(self, client: ReportesApiClient, registry: ValidatorRegistry):
        self.client = client
        self.registry = registry

    async def upload(
        self,
        pub_tem_id: str,
        email: str,
        content: bytes,
        edit: bool = False,
        deadline: Optional[datetime] = None,
    ) -> Result[int]:
        if is_upload_closed(deadline):
            logger.info(f"Carga rechazada para {pub_tem_id}: fecha límite {deadline.isoformat()}")
            return failure_from(UploadWindowClosedError(UPLOAD_CLOSED_MESSAGE))

        try:
            payload, _ = await asyncio.gather(
                self.client.get_template(pub_tem_id),
                self.registry.load(),
            )
            published = parse_published_template(payload, pub_tem_id)

            if is_upload_closed(published.deadline):
                return failure_from(UploadWindowClosedError(UPLOAD_CLOSED_MESSAGE))

            validators = published.all_validators or self.registry.validators
            result = TemplateExcelImporter(published.template, validators).import_workbook(content)
            if not result.records:
                return failure("El archivo no contiene registros", code=ErrorCodes.EMPTY_WORKBOOK)

            loaded = await self.client.load_producer_data(email, pub_tem_id, result.records, edit)
            logger.info(f"Plantilla {pub_tem_id}: {loaded} registros cargados por {email}")
            return success(loaded)

        except UnknownColumnsError as e:
            return failure(e.message, code=ErrorCodes.UNKNOWN_COLUMNS, details={"errors": e.error_log})
        except BackendValidationError as e:
            logger.warning(f"Backend rechazó la carga de {pub_tem_id}: {len(e.error_log)} columnas con errores")
            return failure(e.message, code=ErrorCodes.BACKEND_VALIDATION, details={"errors": e.error_log})
        except PlantillasError as e:
            logger.error(f"Error en la carga de {pub_tem_id}: {e}")
            return failure_from(e)
