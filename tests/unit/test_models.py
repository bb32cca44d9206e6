from __future__ import annotations

from types import SimpleNamespace

import pytest

from moysklad_client.models import ErrorPayload, ListEnvelope


def test_list_envelope_from_mapping() -> None:
    envelope = ListEnvelope.from_api(
        {
            "meta": {"href": "https://example/entity/product", "size": 1500, "limit": 1000, "offset": 0},
            "context": {"employee": {}},
            "rows": [{"id": "a"}, {"id": "b"}],
        }
    )

    assert envelope.total_size == 1500
    assert envelope.meta.limit == 1000
    assert envelope.rows == [{"id": "a"}, {"id": "b"}]
    assert envelope.context == {"employee": {}}


def test_list_envelope_defaults_when_meta_missing() -> None:
    envelope = ListEnvelope.from_api({"rows": []})

    assert envelope.total_size == 0
    assert envelope.context == {}


def test_list_envelope_from_object() -> None:
    envelope = ListEnvelope.from_api(SimpleNamespace(rows=[1, 2], meta={"size": 2}))

    assert envelope.rows == [1, 2]
    assert envelope.total_size == 2


def test_list_envelope_rejects_scalars() -> None:
    with pytest.raises(TypeError):
        ListEnvelope.from_api(42)


def test_error_payload_reads_more_info_alias() -> None:
    payload = ErrorPayload.from_api(
        {
            "errors": [
                {
                    "error": "Entity not found",
                    "code": 1021,
                    "moreInfo": "https://dev.moysklad.ru/doc/api/remap/1.2/#error_1021",
                },
                {"error": "Second problem"},
            ]
        }
    )

    assert payload.first is not None
    assert payload.first.code == 1021
    assert payload.first.more_info.endswith("error_1021")
    assert len(payload.errors) == 2


@pytest.mark.parametrize("body", [None, "Bad Gateway", {"errors": "nope"}, {}])
def test_error_payload_tolerates_unexpected_bodies(body: object) -> None:
    payload = ErrorPayload.from_api(body)

    assert payload.errors == []
    assert payload.first is None
