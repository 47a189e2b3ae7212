import asyncio

import httpx
import pytest

from plantillas.models.template import Validator
from plantillas.modules.validators.registry import ValidatorRegistry, is_code_batch, is_yes_no_batch
from plantillas.services.api_client import ReportesApiClient


def _registry_with(*validators):
    registry = ValidatorRegistry()
    registry.set_validators(validators)
    return registry


def test_yes_no_batch_short_circuits_without_validator():
    registry = _registry_with()
    options = registry.enrich_values("CUALQUIER_CAMPO", ["S", "N"])

    assert [o.label for o in options] == ["S - Sí", "N - No"]
    assert [o.value for o in options] == ["S", "N"]


def test_sexo_biologico_is_enriched_from_validator(sexo_validator):
    registry = _registry_with(sexo_validator)
    options = registry.enrich_values("SEXO_BIOLOGICO", ["1", "2"])

    assert [o.label for o in options] == ["1 - Masculino", "2 - Femenino"]


def test_partial_match_keeps_unknown_codes_raw(sexo_validator):
    registry = _registry_with(sexo_validator)
    options = registry.enrich_values("SEXO_BIOLOGICO", ["1", "9"])

    assert options[0].label == "1 - Masculino"
    assert options[1].label == "9", "Un código sin descripción debe quedar sin etiquetar"


def test_non_code_values_are_returned_raw(sexo_validator):
    registry = _registry_with(sexo_validator)
    options = registry.enrich_values("SEXO_BIOLOGICO", ["Masculino", "1"])

    assert all(o.label == o.value for o in options)


def test_unmapped_field_is_returned_raw(sexo_validator):
    registry = _registry_with(sexo_validator)
    options = registry.enrich_values("CAMPO_SIN_MAPEO", ["1", "2"])

    assert [o.label for o in options] == ["1", "2"]


def test_description_map_is_positional_even_with_nulls():
    validator = Validator.model_validate({
        "name": "SEXO_BIOLOGICO",
        "columns": [
            {"name": "ID_SEXO", "is_validator": True, "values": [1, None, 3]},
            {"name": "DESCRIPCION", "values": ["Masculino", "Femenino", "Intersexual"]},
        ],
    })

    value_map = ValidatorRegistry.description_map(validator)

    assert value_map == {"1": "Masculino", "3": "Intersexual"}, "Un nulo no debe desplazar los índices"


def test_description_map_unwraps_mongo_numbers():
    validator = Validator.model_validate({
        "name": "PAIS",
        "columns": [
            {"name": "ID_PAIS", "is_validator": True, "values": [{"$numberInt": "57"}]},
            {"name": "NOMBRE_PAIS", "values": ["Colombia"]},
        ],
    })

    assert ValidatorRegistry.description_map(validator) == {"57": "Colombia"}


def test_missing_description_column_returns_raw():
    validator = Validator.model_validate({
        "name": "SEXO_BIOLOGICO",
        "columns": [{"name": "ID_SEXO", "is_validator": True, "values": [1, 2]}],
    })
    registry = _registry_with(validator)

    options = registry.enrich_values("SEXO_BIOLOGICO", ["1"])

    assert options[0].label == "1"


@pytest.mark.parametrize(
    "values, expected",
    [
        (["1", "22", "333"], True),
        (["CO", "US"], True),
        (["1", "CO"], False),
        (["1234"], False),
        (["abc"], False),
    ],
)
def test_code_batch_detection(values, expected):
    assert is_code_batch(values) is expected


def test_yes_no_batch_requires_only_s_and_n():
    assert is_yes_no_batch(["S", "N", "S"])
    assert not is_yes_no_batch(["S", "X"])


def test_candidates_for_values(sexo_validator):
    registry = _registry_with(sexo_validator)

    assert registry.candidates_for_values(["1", "2"]) == [sexo_validator]
    assert registry.candidates_for_values(["1", "7"]) == []


def _paged_transport(total, page_size, calls):
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        calls.append(page)
        start = (page - 1) * page_size
        batch = [
            {"name": f"V{i}", "columns": [{"name": "ID", "is_validator": True, "values": [i]}]}
            for i in range(start, min(start + page_size, total))
        ]
        return httpx.Response(200, json={"validators": batch})
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_load_paginates_until_short_page_and_is_idempotent():
    calls = []
    client = ReportesApiClient(base_url="http://backend", transport=_paged_transport(5, 2, calls))
    registry = ValidatorRegistry(client, page_size=2, max_pages=10)

    await registry.load()
    await registry.load()

    assert registry.is_loaded
    assert len(registry.validators) == 5
    assert calls == [1, 2, 3], "La segunda llamada a load() no debe volver a consultar"


@pytest.mark.asyncio
async def test_concurrent_loads_fetch_once():
    calls = []
    client = ReportesApiClient(base_url="http://backend", transport=_paged_transport(1, 10, calls))
    registry = ValidatorRegistry(client, page_size=10)

    await asyncio.gather(registry.load(), registry.load(), registry.load())

    assert calls == [1]


@pytest.mark.asyncio
async def test_load_respects_max_pages():
    calls = []
    client = ReportesApiClient(base_url="http://backend", transport=_paged_transport(100, 2, calls))
    registry = ValidatorRegistry(client, page_size=2, max_pages=3)

    await registry.load()

    assert calls == [1, 2, 3]
    assert len(registry.validators) == 6


@pytest.mark.asyncio
async def test_load_failure_leaves_registry_empty():
    def handler(request):
        return httpx.Response(500, json={"message": "boom"})

    client = ReportesApiClient(base_url="http://backend", transport=httpx.MockTransport(handler))
    registry = ValidatorRegistry(client)

    await registry.load()

    assert registry.validators == []
    assert not registry.is_loaded
    assert registry.enrich_values("SEXO_BIOLOGICO", ["1"])[0].label == "1"
