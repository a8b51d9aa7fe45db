"""Testes do gateway HTTP: autenticação e classificação de status."""
import base64

import pytest
import requests

from ado_client.exceptions import AuthenticationError, MappingError, RequestFailedError
from ado_client.services.http_client import AzureDevOpsHttpClient, build_auth_header


@pytest.mark.parametrize(
    "username,secret",
    [("user", "pass"), ("testuser", "testpass"), ("a@b.com", "p:with:colons")],
)
def test_basic_auth_when_username_present(username, secret):
    expected = "Basic " + base64.b64encode(f"{username}:{secret}".encode()).decode()
    assert build_auth_header(username, secret) == {"Authorization": expected}


@pytest.mark.parametrize("secret", ["my-token", "", "abc.def.ghi"])
def test_bearer_when_username_empty(secret):
    assert build_auth_header("", secret) == {"Authorization": f"Bearer {secret}"}


@pytest.fixture
def http(session):
    return AzureDevOpsHttpClient("user", "pass", session=session)


@pytest.mark.parametrize("method", ["get", "post", "patch"])
def test_200_returns_response(http, session, make_response, method):
    session.request.return_value = make_response(200, json_body={"ok": True})
    args = ("http://test.url",) if method == "get" else ("http://test.url", '{"data": "test"}')

    r = getattr(http, method)(*args)

    assert r.status_code == 200
    assert session.request.call_args.kwargs["method"] == method.upper()
    assert session.request.call_args.kwargs["url"] == "http://test.url"


@pytest.mark.parametrize("method", ["get", "post", "patch"])
def test_203_raises_authentication_error(http, session, make_response, method):
    session.request.return_value = make_response(203)
    args = ("http://test.url",) if method == "get" else ("http://test.url", "{}")

    with pytest.raises(AuthenticationError):
        getattr(http, method)(*args)


@pytest.mark.parametrize("status", [201, 204, 300, 400, 401, 404, 500])
def test_other_status_raises_request_failed(http, session, make_response, status):
    session.request.return_value = make_response(status)

    with pytest.raises(RequestFailedError) as exc:
        http.get("http://test.url")

    assert exc.value.status_code == status
    assert str(status) in str(exc.value)


def test_transport_error_is_wrapped(http, session):
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(RequestFailedError) as exc:
        http.get("http://test.url")

    assert exc.value.status_code is None
    assert "connection refused" in str(exc.value)


def test_auth_header_merged_into_request_headers(http, session):
    http.post("http://test.url", "{}", headers={"Content-Type": "application/json"})

    headers = session.request.call_args.kwargs["headers"]
    assert headers["Content-Type"] == "application/json"
    assert headers["Authorization"] == "Basic " + base64.b64encode(b"user:pass").decode()


def test_auth_header_cannot_be_overridden_by_caller(http, session):
    http.get("http://test.url", headers={"Authorization": "Bearer other"})

    assert session.request.call_args.kwargs["headers"]["Authorization"].startswith("Basic ")


def test_string_body_sent_as_utf8(http, session):
    http.patch("http://test.url", '{"t": "ação"}')

    assert session.request.call_args.kwargs["data"] == '{"t": "ação"}'.encode("utf-8")


def test_bytes_body_sent_unchanged(http, session):
    http.post("http://test.url", b"\x00\x01raw")

    assert session.request.call_args.kwargs["data"] == b"\x00\x01raw"


def test_timeout_is_passed_to_transport(session):
    AzureDevOpsHttpClient("", "token", session=session, timeout=5).get("http://test.url")

    assert session.request.call_args.kwargs["timeout"] == 5


def test_decode_json(make_response):
    r = make_response(200, content=b'{"key": "value", "number": 123}')

    assert AzureDevOpsHttpClient.decode_json(r) == {"key": "value", "number": 123}


def test_decode_json_with_key(make_response):
    r = make_response(200, content=b'{"data": {"nested": "value"}, "other": "stuff"}')

    assert AzureDevOpsHttpClient.decode_json(r, "data") == {"nested": "value"}


@pytest.mark.parametrize("content", [b'{"count": 0}', b"[1, 2]", b"null"])
def test_decode_json_missing_key_raises_mapping_error(make_response, content):
    with pytest.raises(MappingError):
        AzureDevOpsHttpClient.decode_json(make_response(200, content=content), "value")


def test_decode_list(make_response):
    r = make_response(200, json_body={"count": 2, "value": [{"id": 1}, {"id": 2}]})

    assert AzureDevOpsHttpClient.decode_list(r) == [{"id": 1}, {"id": 2}]


@pytest.mark.parametrize(
    "body",
    [{"count": 0}, {"value": {"id": 1}}, {"value": "texto"}, {"value": [1, 2]}],
    ids=["sem-value", "objeto", "string", "lista-de-numeros"],
)
def test_decode_list_rejects_other_shapes(make_response, body):
    with pytest.raises(MappingError):
        AzureDevOpsHttpClient.decode_list(make_response(200, json_body=body))


def test_decode_json_invalid_raises_mapping_error(make_response):
    r = make_response(200, content=b"invalid json{]")

    with pytest.raises(MappingError):
        AzureDevOpsHttpClient.decode_json(r)
