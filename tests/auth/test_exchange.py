from __future__ import annotations

import json
import time

import httpx
import pytest

from prismasdk.auth.exchange import TokenExchanger
from prismasdk.errors import (
    ConfigurationError,
    DecodeError,
    IssuerError,
    TokenExpiredError,
    TransportError,
)
from prismasdk.models.token import ExchangeMaterial

API = "https://api.test"

MATERIAL = ExchangeMaterial(
    realm="AWSSecurityToken",
    metadata={"accessKeyID": "AKIA", "secretAccessKey": "secret", "token": "session"},
)


def test_exchange_posts_issue_request(respx_mock, issued_payload) -> None:
    route = respx_mock.post(f"{API}/issue").mock(
        return_value=httpx.Response(200, json=issued_payload("abc", organization="acct-123"))
    )

    issued = TokenExchanger(f"{API}/").exchange(MATERIAL)

    assert issued.token == "abc"
    assert issued.claims.data.organization == "acct-123"
    request = route.calls.last.request
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Content-Type"] == "application/json"
    assert "Authorization" not in request.headers
    assert json.loads(request.content) == {
        "realm": "AWSSecurityToken",
        "validity": "12h",
        "quota": 0,
        "metadata": {"accessKeyID": "AKIA", "secretAccessKey": "secret", "token": "session"},
    }


def test_exchange_error_envelope(respx_mock) -> None:
    route = respx_mock.post(f"{API}/issue").mock(
        return_value=httpx.Response(
            403,
            json=[
                {
                    "code": 403,
                    "description": "forbidden",
                    "subject": "midgard",
                    "title": "Forbidden",
                    "trace": "t-1",
                    "data": {"attribute": "realm"},
                }
            ],
        )
    )

    with pytest.raises(IssuerError) as exc_info:
        TokenExchanger(API).exchange(MATERIAL)

    err = exc_info.value
    assert err.code == 403
    assert err.status_code == 403
    assert err.description == "forbidden"
    assert err.attribute == "realm"
    assert str(err) == "forbidden"
    assert err.is_forbidden_or_unauthorized()
    assert route.call_count == 1


def test_exchange_error_without_envelope(respx_mock) -> None:
    respx_mock.post(f"{API}/issue").mock(return_value=httpx.Response(502, text="bad gateway\n"))

    with pytest.raises(IssuerError) as exc_info:
        TokenExchanger(API).exchange(MATERIAL)

    assert exc_info.value.code == 502
    assert exc_info.value.description == "bad gateway"


def test_exchange_is_not_retried(respx_mock) -> None:
    route = respx_mock.post(f"{API}/issue").mock(return_value=httpx.Response(503, text="busy"))

    with pytest.raises(IssuerError):
        TokenExchanger(API).exchange(MATERIAL)

    assert route.call_count == 1


def test_exchange_malformed_body(respx_mock) -> None:
    respx_mock.post(f"{API}/issue").mock(return_value=httpx.Response(200, text="not json"))

    with pytest.raises(DecodeError):
        TokenExchanger(API).exchange(MATERIAL)


def test_exchange_missing_token_is_decode_error(respx_mock) -> None:
    respx_mock.post(f"{API}/issue").mock(
        return_value=httpx.Response(200, json={"claims": {"exp": int(time.time()) + 60}})
    )

    with pytest.raises(DecodeError):
        TokenExchanger(API).exchange(MATERIAL)


def test_exchange_rejects_expired_token(respx_mock, issued_payload) -> None:
    respx_mock.post(f"{API}/issue").mock(
        return_value=httpx.Response(200, json=issued_payload(exp=int(time.time()) - 10))
    )

    with pytest.raises(TokenExpiredError) as exc_info:
        TokenExchanger(API).exchange(MATERIAL)

    assert str(exc_info.value) == "Token is expired"


def test_exchange_transport_failure(respx_mock) -> None:
    respx_mock.post(f"{API}/issue").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(TransportError):
        TokenExchanger(API).exchange(MATERIAL)


def test_exchanger_requires_api() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        TokenExchanger("")

    assert exc_info.value.problems == ["attribute API is required"]


def test_material_repr_hides_secrets() -> None:
    text = repr(MATERIAL)

    assert "secret" not in text.replace("secretAccessKey", "")
    assert "session" not in text
    assert "AWSSecurityToken" in text


def test_owned_client_has_no_timeout() -> None:
    exchanger = TokenExchanger(API)

    assert exchanger._http._client.timeout == httpx.Timeout(None)
    exchanger.close()
    assert exchanger._http._client.is_closed
