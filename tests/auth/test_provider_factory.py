from __future__ import annotations

import threading
import time

import httpx
import pytest

from prismasdk.auth.external import ExternalTokenProvider
from prismasdk.auth.factory import ProviderConfig, ProviderKind
from prismasdk.auth.provider import ExchangeTokenProvider
from prismasdk.auth.sources import GCP_METADATA_URL
from prismasdk.errors import ConfigurationError

API = "https://api.test"


def test_aws_static_provider_aggregates_problems() -> None:
    config = ProviderConfig(provider="aws", access_key_id="AKIA")

    with pytest.raises(ConfigurationError) as exc_info:
        config.build_token_provider()

    assert exc_info.value.problems == [
        "attribute API is required",
        "attribute secretAccessKey is required",
        "attribute sessionToken is required",
    ]


def test_unknown_provider_kind() -> None:
    with pytest.raises(ConfigurationError):
        ProviderConfig(provider="azure")


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv("PRISMA_API", API)
    monkeypatch.setenv("PRISMA_NAMESPACE", "/acme")
    monkeypatch.setenv("PRISMA_PROVIDER", "aws-metadata")

    config = ProviderConfig.from_env()

    assert config.api == API
    assert config.namespace == "/acme"
    assert config.provider is ProviderKind.AWS_METADATA
    assert isinstance(config.build_token_provider(), ExchangeTokenProvider)


def test_http_client_is_shared() -> None:
    config = ProviderConfig(api=API)

    first = config.get_http_client()

    assert config.get_http_client() is first
    first.close()


def test_supplied_http_client_is_used(respx_mock, issued_payload) -> None:
    client = httpx.Client()
    respx_mock.post(f"{API}/issue").mock(
        return_value=httpx.Response(200, json=issued_payload("abc", organization="acct-123"))
    )
    config = ProviderConfig(
        api=API,
        access_key_id="AKIA",
        secret_access_key="secret",
        session_token="session",
        http_client=client,
    )

    provider = config.build_token_provider()

    assert config.get_http_client() is client
    assert provider.token() == "abc"
    assert provider.account_id() == "acct-123"


def test_gcp_provider_uses_projectnumber(respx_mock, issued_payload) -> None:
    identity = respx_mock.get(f"{GCP_METADATA_URL}/instance/service-accounts/default/identity").mock(
        return_value=httpx.Response(200, text="gcp-jwt")
    )
    respx_mock.post(f"{API}/issue").mock(
        return_value=httpx.Response(200, json=issued_payload("abc", projectnumber="987"))
    )
    provider = ProviderConfig(api=API, provider=ProviderKind.GCP, audience="custom").build_token_provider()

    assert provider.account_id() == "987"
    assert identity.calls.last.request.url.params["audience"] == "custom"


def test_token_provider_reads_env(monkeypatch, make_jwt) -> None:
    token = make_jwt({"exp": int(time.time()) + 600})
    monkeypatch.setenv("ENFORCERD_TOKEN", token)

    provider = ProviderConfig(provider="token").build_token_provider()

    assert isinstance(provider, ExternalTokenProvider)
    assert provider.token() == token


def test_shared_client_created_once_under_contention(monkeypatch) -> None:
    created: list[httpx.Client] = []
    real_client = httpx.Client

    def slow_client(**kwargs) -> httpx.Client:
        time.sleep(0.05)
        client = real_client(**kwargs)
        created.append(client)
        return client

    monkeypatch.setattr(httpx, "Client", slow_client)
    config = ProviderConfig(api=API, provider="aws-metadata")
    barrier = threading.Barrier(4)
    seen: list[httpx.Client] = []

    def worker() -> None:
        barrier.wait()
        seen.append(config.get_http_client())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(created) == 1
    assert all(client is created[0] for client in seen)
    created[0].close()
