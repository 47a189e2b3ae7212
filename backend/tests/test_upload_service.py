import io
import json
from datetime import datetime, timedelta

import httpx
import pytest
from openpyxl import Workbook

from plantillas.core import ErrorCodes
from plantillas.modules.validators.registry import ValidatorRegistry
from plantillas.services.api_client import ReportesApiClient
from plantillas.services.upload_service import UPLOAD_CLOSED_MESSAGE, UploadService, is_upload_closed


def _workbook_bytes(rows):
    wb = Workbook()
    for row in rows:
        wb.active.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _service(published_payload, load_response=None, calls=None):
    calls = calls if calls is not None else []

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.url.path.endswith("/validators/pagination"):
            return httpx.Response(200, json={"validators": []})
        if request.url.path.startswith("/pTemplates/template/"):
            return httpx.Response(200, json=published_payload)
        if request.url.path == "/pTemplates/producer/load":
            if load_response is not None:
                return load_response
            body = json.loads(request.content)
            return httpx.Response(200, json={"recordsLoaded": len(body["data"])})
        return httpx.Response(404)

    client = ReportesApiClient(base_url="http://backend", transport=httpx.MockTransport(handler))
    return UploadService(client, ValidatorRegistry(client))


def test_is_upload_closed():
    now = datetime(2024, 6, 1, 12, 0)

    assert is_upload_closed(datetime(2024, 5, 31), now)
    assert not is_upload_closed(datetime(2024, 6, 2), now)
    assert not is_upload_closed(None, now)


@pytest.mark.asyncio
async def test_upload_submits_parsed_records(published_payload):
    calls = []
    service = _service(published_payload, calls=calls)
    content = _workbook_bytes([["NOMBRE", "SEXO_BIOLOGICO"], ["Ana", "1 - Masculino"], ["Luis", "Femenino"]])

    result = await service.upload("p1", "a@b.co", content)

    assert result.is_success()
    assert result.value == 2
    assert ("PUT", "/pTemplates/producer/load") in calls


@pytest.mark.asyncio
async def test_upload_after_deadline_is_rejected_without_backend_calls(published_payload):
    calls = []
    service = _service(published_payload, calls=calls)

    result = await service.upload("p1", "a@b.co", b"", deadline=datetime.now() - timedelta(days=1))

    assert result.is_failure()
    assert result.error == UPLOAD_CLOSED_MESSAGE
    assert result.code == ErrorCodes.UPLOAD_WINDOW_CLOSED
    assert calls == []


@pytest.mark.asyncio
async def test_unknown_columns_are_not_submitted(published_payload):
    calls = []
    service = _service(published_payload, calls=calls)
    content = _workbook_bytes([["NOMBRE", "OTRA"], ["Ana", "x"]])

    result = await service.upload("p1", "a@b.co", content)

    assert result.code == ErrorCodes.UNKNOWN_COLUMNS
    assert result.details["errors"][0]["column"] == "OTRA"
    assert ("PUT", "/pTemplates/producer/load") not in calls


@pytest.mark.asyncio
async def test_workbook_without_records_is_empty(published_payload):
    service = _service(published_payload)

    result = await service.upload("p1", "a@b.co", _workbook_bytes([["NOMBRE"]]))

    assert result.code == ErrorCodes.EMPTY_WORKBOOK


@pytest.mark.asyncio
async def test_backend_rejection_returns_error_log(published_payload):
    rejection = httpx.Response(400, json={
        "details": [{"column": "NOMBRE", "errors": [{"register": 2, "message": "Requerido"}]}],
    })
    service = _service(published_payload, load_response=rejection)

    result = await service.upload("p1", "a@b.co", _workbook_bytes([["NOMBRE"], ["Ana"]]))

    assert result.code == ErrorCodes.BACKEND_VALIDATION
    assert result.details["errors"] == [
        {"column": "NOMBRE", "errors": [{"register": 2, "message": "Requerido", "value": None}]},
    ]


@pytest.mark.asyncio
async def test_transport_failure_is_reported(published_payload):
    service = _service(published_payload, load_response=httpx.Response(500))

    result = await service.upload("p1", "a@b.co", _workbook_bytes([["NOMBRE"], ["Ana"]]))

    assert result.code == ErrorCodes.TRANSPORT_ERROR
