import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from plantillas.core.exceptions import SchemaMismatchError, UnknownColumnsError, WorkbookError
from plantillas.models.template import Template, Validator
from plantillas.modules.excel_exporter.template_exporter import export_template
from plantillas.modules.excel_importer.coercion import coerce_value
from plantillas.modules.excel_importer.template_importer import import_workbook


def _workbook_bytes(rows, title="Datos"):
    wb = Workbook()
    sheet = wb.active
    sheet.title = title
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def test_unknown_columns_reject_whole_batch():
    template = Template.model_validate({
        "name": "Personas",
        "fields": [{"name": "NOMBRE"}, {"name": "EDAD", "datatype": "Entero"}],
    })
    content = _workbook_bytes([
        ["NOMBRE", "EDAD", "CAMPO_INEXISTENTE"],
        ["Ana", 20, "x"],
    ])

    with pytest.raises(UnknownColumnsError) as exc_info:
        import_workbook(content, template)

    error = exc_info.value
    assert error.columns == ["CAMPO_INEXISTENTE"]
    assert error.error_log == [{
        "column": "CAMPO_INEXISTENTE",
        "errors": [{
            "register": 1,
            "message": "Columna 'CAMPO_INEXISTENTE' no existe en la plantilla. Columnas válidas: NOMBRE, EDAD",
            "value": "CAMPO_INEXISTENTE",
        }],
    }]


def test_every_unknown_column_is_reported():
    template = Template.model_validate({"name": "P", "fields": [{"name": "NOMBRE"}]})
    content = _workbook_bytes([["NOMBRE", "X1", "X2"], ["Ana", 1, 2]])

    with pytest.raises(UnknownColumnsError) as exc_info:
        import_workbook(content, template)

    assert [entry["column"] for entry in exc_info.value.error_log] == ["X1", "X2"]


def test_invalid_file_raises_workbook_error(template):
    with pytest.raises(WorkbookError):
        import_workbook(b"esto no es un xlsx", template)


def test_headerless_sheet_is_schema_mismatch(template):
    with pytest.raises(SchemaMismatchError):
        import_workbook(_workbook_bytes([]), template)


def test_values_are_coerced_by_datatype(template, validators):
    content = _workbook_bytes([
        template.field_names,
        ["Ana", "21 años", "2 - Femenino", "Cédula de ciudadanía", datetime(2024, 1, 15),
         45.5, "Si", "https://example.org", "es, en ,"],
    ])

    record = import_workbook(content, template, validators).records[0]

    assert record == {
        "NOMBRE": "Ana",
        "EDAD": 21,
        "SEXO_BIOLOGICO": 2,
        "TIPO_DOC": "CC",
        "FECHA_INGRESO": "2024-01-15T00:00:00.000Z",
        "AVANCE": 45.5,
        "ACTIVO": True,
        "ENLACE": "https://example.org",
        "IDIOMAS": ["es", "en"],
    }


def test_unparseable_values_keep_original_text(template):
    content = _workbook_bytes([
        ["EDAD", "AVANCE", "FECHA_INGRESO"],
        ["veinte", "mucho", "no es fecha"],
    ])

    record = import_workbook(content, template).records[0]

    assert record == {"EDAD": "veinte", "AVANCE": "mucho", "FECHA_INGRESO": "no es fecha"}


def test_empty_rows_are_skipped_and_missing_cells_are_none(template):
    content = _workbook_bytes([
        ["NOMBRE", "EDAD"],
        ["Ana", None],
        [None, None],
        ["Luis", 30],
    ])

    result = import_workbook(content, template)

    assert result.records == [{"NOMBRE": "Ana", "EDAD": None}, {"NOMBRE": "Luis", "EDAD": 30}]


def test_hyperlink_cells_use_their_target(template):
    wb = Workbook()
    sheet = wb.active
    sheet.append(["ENLACE"])
    sheet["A2"] = "Ver documento"
    sheet["A2"].hyperlink = "https://example.org/doc"
    buffer = io.BytesIO()
    wb.save(buffer)

    record = import_workbook(buffer.getvalue(), template).records[0]

    assert record["ENLACE"] == "https://example.org/doc"


def test_multiple_values_are_split_without_lookup_or_coercion():
    template = Template.model_validate({
        "name": "Multi",
        "fields": [{"name": "DOCS", "datatype": "Entero", "multiple": True,
                    "validate_with": "TIPO_DOCUMENTO - CODIGO"}],
    })
    validator = Validator.model_validate({
        "name": "TIPO_DOCUMENTO",
        "values": [{"CODIGO": "CC", "DESCRIPCION": "Cédula de ciudadanía"}],
    })
    content = _workbook_bytes([["DOCS"], ["Cédula de ciudadanía, 12 , ,TI"]])

    record = import_workbook(content, template, [validator]).records[0]

    assert record["DOCS"] == ["Cédula de ciudadanía", "12", "TI"]


def test_export_then_import_preserves_records(template, validators):
    records = [
        {"NOMBRE": "Ana", "EDAD": 20, "SEXO_BIOLOGICO": 1, "TIPO_DOC": "CC",
         "FECHA_INGRESO": "2024-03-01", "AVANCE": 80.0, "ACTIVO": True,
         "ENLACE": "https://example.org", "IDIOMAS": ["es", "en"]},
    ]
    exported = export_template(template, validators, records=records, include_validator_sheets=True)

    imported = import_workbook(exported, template, validators)

    assert imported.sheet_name == "Estudiantes", "La hoja Guía no es la hoja de datos"
    assert imported.records == [{
        "NOMBRE": "Ana", "EDAD": 20, "SEXO_BIOLOGICO": 1, "TIPO_DOC": "CC",
        "FECHA_INGRESO": "2024-03-01T00:00:00.000Z", "AVANCE": 80.0, "ACTIVO": True,
        "ENLACE": "https://example.org", "IDIOMAS": ["es", "en"],
    }]


def test_date_range_survives_export_then_import():
    template = Template.model_validate({
        "name": "Convocatorias",
        "fields": [
            {"name": "NOMBRE", "datatype": "Texto Corto"},
            {"name": "PERIODO", "datatype": "Fecha Inicial / Fecha Final"},
        ],
    })
    records = [{"NOMBRE": "2024-1", "PERIODO": ["2024-01-01", "2024-02-01"]}]

    imported = import_workbook(export_template(template, records=records), template)

    assert imported.records == [{"NOMBRE": "2024-1", "PERIODO": ["2024-01-01", "2024-02-01"]}]


def test_formula_errors_are_kept_as_error_text(template):
    wb = Workbook()
    sheet = wb.active
    sheet.append(["EDAD"])
    sheet["A2"] = "#DIV/0!"
    buffer = io.BytesIO()
    wb.save(buffer)

    record = import_workbook(buffer.getvalue(), template).records[0]

    assert record["EDAD"] == "ERROR: #DIV/0!"


@pytest.mark.parametrize(
    "datatype, raw, expected",
    [
        ("Entero", 3.0, 3),
        ("Entero", "12abc", 12),
        ("Decimal", "2,5", 2.0),
        ("Porcentaje", 50, 50.0),
        ("True/False", "SI", True),
        ("True/False", "No", False),
        ("Texto Corto", 7.0, "7"),
        ("Texto Largo", {"a": 1}, '{"a": 1}'),
        ("Fecha Inicial / Fecha Final", '["2024-01-01", "2024-02-01"]', ["2024-01-01", "2024-02-01"]),
        ("Fecha Inicial / Fecha Final", "enero", "enero"),
        ("Fecha", "15/01/2024", "2024-01-15T00:00:00.000Z"),
        ("Link", "https://x.org", "https://x.org"),
        ("Desconocido", {"a": 1}, '{"a": 1}'),
    ],
)
def test_coerce_value(datatype, raw, expected):
    assert coerce_value(datatype, raw) == expected
