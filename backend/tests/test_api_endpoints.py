import io
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook, load_workbook

from plantillas.api.api import create_app
from plantillas.modules.validators.registry import ValidatorRegistry
from plantillas.services.api_client import ReportesApiClient


@pytest.fixture
def backend_calls():
    return []


@pytest.fixture
def client(published_payload, backend_calls):
    def handler(request):
        backend_calls.append((request.method, request.url.path, dict(request.url.params)))
        path = request.url.path
        if path == "/validators/pagination":
            return httpx.Response(200, json={"validators": []})
        if path.startswith("/pTemplates/template/"):
            if path.endswith("/falla"):
                return httpx.Response(500)
            return httpx.Response(200, json=published_payload)
        if path == "/pTemplates/dimension/mergedData":
            return httpx.Response(200, json={"data": [
                {"NOMBRE": "Ana", "SEXO_BIOLOGICO": "1"},
                {"NOMBRE": "Luis", "SEXO_BIOLOGICO": "2"},
            ]})
        if path == "/pTemplates/producer/load":
            body = json.loads(request.content)
            return httpx.Response(200, json={"recordsLoaded": len(body["data"])})
        return httpx.Response(404)

    app = create_app()
    api_client = ReportesApiClient(base_url="http://backend", transport=httpx.MockTransport(handler))
    app.state.api_client = api_client
    app.state.registry = ValidatorRegistry(api_client)
    with TestClient(app) as test_client:
        yield test_client


def _xlsx(rows):
    wb = Workbook()
    for row in rows:
        wb.active.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_registry_is_loaded_at_startup(client, backend_calls):
    assert ("GET", "/validators/pagination", {"page": "1", "limit": "200"}) in backend_calls


def test_download_blank_template(client):
    response = client.get("/plantillas/p1/descarga")

    assert response.status_code == 200
    assert 'filename="Estudiantes.xlsx"' in response.headers["content-disposition"]
    wb = load_workbook(io.BytesIO(response.content))
    assert "Estudiantes" in wb.sheetnames


def test_download_with_data_forwards_filters(client, backend_calls):
    response = client.get("/plantillas/p1/datos", params={"email": "a@b.co", "SEXO_BIOLOGICO": "1"})

    assert response.status_code == 200
    merged = [c for c in backend_calls if c[1] == "/pTemplates/dimension/mergedData"]
    assert merged[0][2]["SEXO_BIOLOGICO"] == "1"
    sheet = load_workbook(io.BytesIO(response.content))["Estudiantes"]
    assert sheet["A2"].value == "Ana"


def test_backend_failure_returns_502(client):
    response = client.get("/plantillas/falla/descarga")

    assert response.status_code == 502
    assert response.json()["detail"]["code"] == "TRANSPORT_ERROR"


def test_upload_returns_records_loaded(client):
    response = client.post(
        "/plantillas/p1/carga",
        data={"email": "a@b.co", "edit": "false"},
        files={"file": ("datos.xlsx", _xlsx([["NOMBRE"], ["Ana"], ["Luis"]]))},
    )

    assert response.status_code == 200
    assert response.json() == {"recordsLoaded": 2}


def test_upload_with_unknown_columns_returns_error_log(client):
    response = client.post(
        "/plantillas/p1/carga",
        data={"email": "a@b.co"},
        files={"file": ("datos.xlsx", _xlsx([["NOMBRE", "CAMPO_INEXISTENTE"], ["Ana", 1]]))},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "UNKNOWN_COLUMNS"
    assert body["details"][0]["column"] == "CAMPO_INEXISTENTE"


def test_upload_after_end_date_is_rejected(client):
    response = client.post(
        "/plantillas/p1/carga",
        data={"email": "a@b.co", "end_date": "2000-01-01T00:00:00"},
        files={"file": ("datos.xlsx", _xlsx([["NOMBRE"], ["Ana"]]))},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "La fecha de carga de plantillas ha culminado."


def test_filters_use_saved_config(client):
    saved = client.put("/plantillas/p1/filtros/config", json={"config": {"NOMBRE": {"is_visible": False}}})
    assert saved.status_code == 200

    response = client.get("/plantillas/p1/filtros", params={"email": "a@b.co"})

    assert response.status_code == 200
    filters = {f["field_name"]: f for f in response.json()}
    assert filters["NOMBRE"]["is_visible"] is False
    assert [o["label"] for o in filters["SEXO_BIOLOGICO"]["options"]] == ["1", "2"]


def test_visited_templates_are_tracked(client):
    client.get("/plantillas/p1/datos", params={"email": "a@b.co"})

    response = client.get("/plantillas/visitadas", params={"email": "a@b.co"})

    assert [item["template_id"] for item in response.json()["items"]] == ["p1"]


def test_consolidated_summary(client):
    response = client.post("/plantillas/consolidado", json={"pub_tem_ids": ["p1"]})

    assert response.status_code == 200
    wb = load_workbook(io.BytesIO(response.content))
    assert wb.sheetnames[:2] == ["Plantillas", "Campos Plantillas"]


def test_combined_data(client):
    response = client.post("/plantillas/combinado", json={"pub_tem_ids": ["p1", "falla"], "email": "a@b.co"})

    assert response.status_code == 200
    sheet = load_workbook(io.BytesIO(response.content))["Datos_Combinados"]
    assert sheet["A1"].value == "PLANTILLA_ORIGEN"
    assert sheet["B1"].value == "Estudiantes_NOMBRE"
