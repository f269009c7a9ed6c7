"""Export -> import round trips against the materialized request."""

import pytest

from reqcraft.codegen import generate_curl_command
from reqcraft.curl_parser import parse_curl
from reqcraft.materialize import materialize_request
from reqcraft.models import BasicAuth, BearerAuth, BodyType, KeyValue, Request, VariableType
from tests.conftest import var

ENV = [
    var("base", "https://api.test/v1"),
    var("id", "42", VariableType.NUMBER),
    var("token", "s3cr3t"),
    var("payload", '{"note": "it\'s here", "tags": ["a b", "c"]}', VariableType.JSON),
    var("who", "Ann O'Neil"),
]

REQUESTS = [
    Request(
        method="GET",
        url="{{base}}/users/{{id}}?expand=1",
        params=[KeyValue(key="expand", value="2"), KeyValue(key="q", value="{{who}}")],
        headers=[KeyValue(key="Accept", value="application/json")],
        auth=BearerAuth(token="{{token}}"),
    ),
    Request(
        method="POST",
        url="{{base}}/notes",
        headers=[KeyValue(key="Content-Type", value="application/json")],
        body="{{payload}}",
        auth=BasicAuth(username="{{who}}", password="p:w"),
    ),
    Request(
        method="PUT",
        url="{{base}}/form",
        body_type=BodyType.URL_ENCODED,
        form_data=[KeyValue(key="name", value="{{who}}"), KeyValue(key="n", value="1&2")],
    ),
    Request(
        method="POST",
        url="{{base}}/upload",
        body_type=BodyType.FORM_DATA,
        form_data=[KeyValue(key="title", value="x = y"), KeyValue(key="id", value="{{id}}")],
    ),
]


@pytest.mark.parametrize("request_template", REQUESTS, ids=["get", "json", "urlencoded", "form"])
def test_export_then_import_matches_materialized(request_template):
    expected = materialize_request(request_template, ENV)
    reparsed = parse_curl(generate_curl_command(request_template, ENV))
    actual = materialize_request(reparsed, [])

    assert actual.method == expected.method
    assert actual.url == expected.url
    assert sorted(actual.headers) == sorted(expected.headers)
    assert actual.body == expected.body


def test_reparsed_request_keeps_body_type():
    reparsed = parse_curl(generate_curl_command(REQUESTS[2], ENV))
    assert reparsed.body_type == BodyType.URL_ENCODED
    assert [(f.key, f.value) for f in reparsed.form_data] == [("name", "Ann O'Neil"), ("n", "1&2")]


def test_reparsed_auth_is_recovered():
    reparsed = parse_curl(generate_curl_command(REQUESTS[1], ENV))
    assert reparsed.auth == BasicAuth(username="Ann O'Neil", password="p:w")
