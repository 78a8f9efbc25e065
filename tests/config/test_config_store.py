from __future__ import annotations

# ruff: noqa: S101,S105,S106
import json
import stat
import sys
from pathlib import Path

import pytest

from prismasdk.auth.factory import ProviderKind
from prismasdk.config import ConfigData, ConfigStore, EncryptedConfigError, Profile


def test_load_ignores_unknown_fields(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    payload = {
        "default": "lambda",
        "profiles": {
            "lambda": {
                "name": "lambda",
                "api": "https://api.test",
                "namespace": "/acme",
                "tenant_id": "ignored",
            }
        },
    }
    path.write_text(json.dumps(payload), encoding="utf-8")

    cfg = ConfigStore(path=path).load()

    profile = cfg.profiles["lambda"]
    assert cfg.default_profile == "lambda"
    assert profile.provider == "aws"
    assert "tenant_id" not in profile.__dict__


def test_add_use_delete_profiles(tmp_path: Path) -> None:
    store = ConfigStore(path=tmp_path / "config.json")

    cfg = store.add_or_update_profile(Profile(name="first", api="https://a.test"))
    assert cfg.default_profile == "first"

    cfg = store.add_or_update_profile(Profile(name="second", api="https://b.test"))
    assert cfg.default_profile == "first"

    store.set_default_profile("second")
    assert store.default() is not None
    assert store.default().api == "https://b.test"

    cfg = store.delete_profile("second")
    assert cfg.default_profile is None
    assert list(cfg.profiles) == ["first"]

    with pytest.raises(KeyError):
        store.set_default_profile("missing")
    with pytest.raises(KeyError):
        store.delete_profile("missing")


def test_profile_to_provider_config() -> None:
    profile = Profile(
        name="gce",
        api="https://api.test",
        namespace="/acme",
        provider="gcp",
        audience="custom",
    )

    config = profile.to_provider_config()

    assert config.provider is ProviderKind.GCP
    assert config.api == "https://api.test"
    assert config.namespace == "/acme"
    assert config.audience == "custom"


def test_default_path_follows_config_path(tmp_path: Path) -> None:
    store = ConfigStore()
    store.add_or_update_profile(Profile(name="dev"))

    assert (tmp_path / "config.json").exists()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission semantics")
def test_save_enforces_restrictive_permissions(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default": None, "profiles": {}}), encoding="utf-8")
    path.chmod(0o644)

    store = ConfigStore(path=path)
    store.load()
    assert stat.S_IMODE(path.stat().st_mode) == 0o600

    store.save(ConfigData())
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_plaintext_without_key(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = ConfigStore(path=path)

    store.save(ConfigData(profiles={"p": Profile(name="p", secret_access_key="shh")}))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["profiles"]["p"]["secret_access_key"] == "shh"


def test_encryption_round_trip_covers_sensitive_fields(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    pytest.importorskip("cryptography", reason="cryptography required")
    from cryptography.fernet import Fernet

    monkeypatch.setenv("PRISMA_CONFIG_ENCRYPTION_KEY", Fernet.generate_key().decode("utf-8"))

    path = tmp_path / "config.json"
    store = ConfigStore(path=path)
    profile = Profile(
        name="secure",
        access_key_id="AKIA",
        secret_access_key="secret",
        session_token="session",
        token="a.b.c",
    )
    store.save(ConfigData(default_profile="secure", profiles={"secure": profile}))

    stored = json.loads(path.read_text(encoding="utf-8"))["profiles"]["secure"]
    assert stored["access_key_id"] == "AKIA"
    assert stored["secret_access_key"].startswith("enc:")
    assert stored["session_token"].startswith("enc:")
    assert stored["token"].startswith("enc:")

    loaded = store.load().profiles["secure"]
    assert loaded.secret_access_key == "secret"
    assert loaded.session_token == "session"
    assert loaded.token == "a.b.c"


def test_passphrase_key_is_derived(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    pytest.importorskip("cryptography", reason="cryptography required")
    monkeypatch.setenv("PRISMA_CONFIG_ENCRYPTION_KEY", "correct horse battery staple")

    store = ConfigStore(path=tmp_path / "config.json")
    store.save(ConfigData(profiles={"p": Profile(name="p", token="a.b.c")}))

    assert store.load().profiles["p"].token == "a.b.c"


def test_encrypted_config_requires_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    pytest.importorskip("cryptography", reason="cryptography required")
    from cryptography.fernet import Fernet

    monkeypatch.setenv("PRISMA_CONFIG_ENCRYPTION_KEY", Fernet.generate_key().decode("utf-8"))
    path = tmp_path / "config.json"
    store = ConfigStore(path=path)
    store.save(ConfigData(profiles={"p": Profile(name="p", token="a.b.c")}))

    monkeypatch.delenv("PRISMA_CONFIG_ENCRYPTION_KEY")
    with pytest.raises(EncryptedConfigError):
        store.load()

    monkeypatch.setenv("PRISMA_CONFIG_ENCRYPTION_KEY", Fernet.generate_key().decode("utf-8"))
    with pytest.raises(EncryptedConfigError):
        store.load()
