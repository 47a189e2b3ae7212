import pytest

from plantillas.config.settings import settings
from plantillas.models.template import Template, Validator


@pytest.fixture(autouse=True)
def prefs_tmp_path(tmp_path, monkeypatch):
    path = tmp_path / "prefs.json"
    monkeypatch.setattr(settings, "PREFS_PATH", str(path))
    return path


@pytest.fixture
def sexo_validator():
    return Validator.model_validate({
        "_id": "v1",
        "name": "SEXO_BIOLOGICO",
        "columns": [
            {"name": "ID_SEXO", "is_validator": True, "values": [1, 2]},
            {"name": "DESCRIPCION_SEXO", "is_validator": False, "values": ["Masculino", "Femenino"]},
        ],
    })


@pytest.fixture
def tipo_documento_validator():
    # Forma por filas, como llega embebida en la plantilla publicada
    return Validator.model_validate({
        "name": "TIPO_DOCUMENTO",
        "values": [
            {"CODIGO": "CC", "DESCRIPCION": "Cédula de ciudadanía"},
            {"CODIGO": "TI", "DESCRIPCION": "Tarjeta de identidad"},
        ],
    })


@pytest.fixture
def template():
    return Template.model_validate({
        "_id": "t1",
        "name": "Estudiantes",
        "fields": [
            {"name": "NOMBRE", "datatype": "Texto Corto", "required": True,
             "comment": "Nombre completo del estudiante"},
            {"name": "EDAD", "datatype": "Entero"},
            {"name": "SEXO_BIOLOGICO", "datatype": "Entero", "validate_with": "SEXO_BIOLOGICO - ID_SEXO"},
            {"name": "TIPO_DOC", "datatype": "Texto Corto", "validate_with": "TIPO_DOCUMENTO - CODIGO"},
            {"name": "FECHA_INGRESO", "datatype": "Fecha"},
            {"name": "AVANCE", "datatype": "Porcentaje"},
            {"name": "ACTIVO", "datatype": "True/False"},
            {"name": "ENLACE", "datatype": "Link"},
            {"name": "IDIOMAS", "datatype": "Texto Corto", "multiple": True},
        ],
    })


@pytest.fixture
def validators(sexo_validator, tipo_documento_validator):
    return [sexo_validator, tipo_documento_validator]


@pytest.fixture
def published_payload(template, validators):
    return {
        "_id": "p1",
        "name": "Estudiantes 2024-1",
        "template": {
            **template.model_dump(by_alias=True),
            "validators": [v.model_dump(by_alias=True) for v in validators],
        },
    }
