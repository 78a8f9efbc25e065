from __future__ import annotations

import base64
import json
import sys
import time
from pathlib import Path

import pytest
import respx
from typer.testing import CliRunner


# Ensure the repository-local ``src`` directory is importable when the project is
# not installed as a package. Pytest executes from the repository root where the
# ``src`` layout is not on ``sys.path`` by default, so the prismasdk package would
# otherwise be missing.
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

API = "https://api.test"

_ENV_VARS = (
    "PRISMA_API",
    "PRISMA_NAMESPACE",
    "PRISMA_PROVIDER",
    "PRISMA_PROFILE",
    "PRISMA_TOKEN",
    "APOCTL_TOKEN",
    "ENFORCERD_TOKEN",
    "PRISMA_DEBUG",
    "PRISMA_CONFIG_ENCRYPTION_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("prismasdk.config.CONFIG_PATH", str(tmp_path / "config.json"))


@pytest.fixture
def token_getter():
    return lambda: "dummy-token"


@pytest.fixture
def respx_mock():
    with respx.mock(assert_all_called=False) as respx_mgr:
        yield respx_mgr


@pytest.fixture
def cli_runner():
    return CliRunner()


def _segment(payload: dict) -> str:
    raw = json.dumps(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


@pytest.fixture
def make_jwt():
    """Build unsigned dot-separated tokens carrying the given claims."""

    def factory(claims: dict) -> str:
        return f"{_segment({'alg': 'none', 'typ': 'JWT'})}.{_segment(claims)}.signature"

    return factory


@pytest.fixture
def issued_payload():
    """Build ``/issue`` response bodies."""

    def factory(token: str = "abc", *, exp: int | None = None, **data: str) -> dict:
        return {
            "token": token,
            "claims": {
                "iss": API,
                "sub": "arn:aws:iam::123:role/worker",
                "realm": "awssecuritytoken",
                "exp": exp if exp is not None else int(time.time()) + 3600,
                "iat": int(time.time()),
                "data": data,
            },
        }

    return factory
