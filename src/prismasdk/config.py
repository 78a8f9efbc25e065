"""Profile store for the ``prismax`` CLI.

Profiles live in one JSON file under ``$PRISMA_HOME`` (``~/.prisma`` by
default) that is kept at mode 0600. When ``PRISMA_CONFIG_ENCRYPTION_KEY`` is
set and ``cryptography`` is installed, credential fields are stored as
``enc:<fernet token>``.
"""

from __future__ import annotations

import base64
import binascii
import functools
import hashlib
import json
import logging
import os
import stat
from dataclasses import asdict, dataclass, field, fields
from importlib import import_module
from pathlib import Path
from typing import Any

from .auth.factory import ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

PRISMA_DIR = os.path.expanduser(os.getenv("PRISMA_HOME", "~/.prisma"))
CONFIG_PATH = os.path.join(PRISMA_DIR, "config.json")
ENCRYPTION_KEY_ENV = "PRISMA_CONFIG_ENCRYPTION_KEY"

SENSITIVE_FIELDS = ("secret_access_key", "session_token", "token")
_ENCRYPTED_PREFIX = "enc:"
_KDF_SALT = b"prismasdk-config"
_KDF_ROUNDS = 390_000


class EncryptedConfigError(RuntimeError):
    """Raised when encrypted configuration cannot be decrypted."""


def _fernet_key(secret: str) -> bytes:
    """Use ``secret`` as a Fernet key when it is one, else derive one from it."""

    encoded = secret.strip().encode("utf-8")
    try:
        if len(base64.urlsafe_b64decode(encoded)) == 32:
            return encoded
    except (binascii.Error, ValueError):
        pass
    digest = hashlib.pbkdf2_hmac("sha256", encoded, _KDF_SALT, _KDF_ROUNDS, dklen=32)
    return base64.urlsafe_b64encode(digest)


class FieldCipher:
    """Encrypts and decrypts single profile fields with one Fernet key."""

    def __init__(self, secret: str) -> None:
        fernet = import_module("cryptography.fernet")
        self._fernet = fernet.Fernet(_fernet_key(secret))
        self._invalid_token: type[Exception] = fernet.InvalidToken

    def seal(self, value: str) -> str:
        return _ENCRYPTED_PREFIX + self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def unseal(self, value: str) -> str:
        try:
            plain = self._fernet.decrypt(value[len(_ENCRYPTED_PREFIX):].encode("utf-8"))
        except self._invalid_token as exc:
            raise EncryptedConfigError(
                "Unable to decrypt prismasdk configuration; verify encryption key."
            ) from exc
        return plain.decode("utf-8")


@functools.lru_cache(maxsize=4)
def _cipher_for(secret: str) -> FieldCipher | None:
    try:
        return FieldCipher(secret)
    except ImportError:
        logger.info(
            "%s is set but cryptography is unavailable; storing config in plaintext.",
            ENCRYPTION_KEY_ENV,
        )
        return None


def current_cipher() -> FieldCipher | None:
    """Return the cipher for the configured key, or ``None`` when unset."""

    secret = (os.getenv(ENCRYPTION_KEY_ENV) or "").strip()
    if not secret:
        return None
    return _cipher_for(secret)


def _seal_fields(values: dict[str, Any], cipher: FieldCipher | None) -> dict[str, Any]:
    if cipher is None:
        return values
    sealed = dict(values)
    for name in SENSITIVE_FIELDS:
        value = sealed.get(name)
        if isinstance(value, str) and value:
            sealed[name] = cipher.seal(value)
    return sealed


def _unseal_fields(values: dict[str, Any], cipher: FieldCipher | None) -> dict[str, Any]:
    opened = dict(values)
    for name in SENSITIVE_FIELDS:
        value = opened.get(name)
        if not (isinstance(value, str) and value.startswith(_ENCRYPTED_PREFIX)):
            continue
        if cipher is None:
            raise EncryptedConfigError(
                f"Encrypted prismasdk configuration detected but {ENCRYPTION_KEY_ENV} is not set."
            )
        opened[name] = cipher.unseal(value)
    return opened


def _restrict_permissions(path: Path) -> None:
    if not path.exists():
        return
    try:
        if os.name == "nt":
            os.chmod(path, stat.S_IREAD | stat.S_IWRITE)
            return
        if stat.S_IMODE(path.stat().st_mode) & (stat.S_IRWXG | stat.S_IRWXO):
            logger.warning("Adjusted permissions for %s to 0o600", path)
        path.chmod(0o600)
    except PermissionError as exc:
        logger.warning("Unable to enforce secure permissions for %s: %s", path, exc)


@dataclass
class Profile:
    name: str
    api: str | None = None
    namespace: str | None = None
    provider: str = ProviderKind.AWS.value
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    token: str | None = None
    audience: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> Profile:
        known = {item.name for item in fields(cls)} - {"name"}
        return cls(name=name, **{k: v for k, v in data.items() if k in known})

    def to_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            api=self.api or "",
            namespace=self.namespace or "",
            provider=self.provider,
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            token=self.token,
            audience=self.audience,
        )


@dataclass
class ConfigData:
    default_profile: str | None = None
    profiles: dict[str, Profile] = field(default_factory=dict)


class ConfigStore:
    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path or CONFIG_PATH)

    def load(self) -> ConfigData:
        if not self.path.exists():
            return ConfigData()
        _restrict_permissions(self.path)
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        cipher = current_cipher()
        profiles = {
            name: Profile.from_dict(name, _unseal_fields(values, cipher))
            for name, values in (raw.get("profiles") or {}).items()
        }
        return ConfigData(default_profile=raw.get("default"), profiles=profiles)

    def save(self, cfg: ConfigData) -> None:
        cipher = current_cipher()
        payload = {
            "default": cfg.default_profile,
            "profiles": {
                name: _seal_fields(asdict(profile), cipher)
                for name, profile in cfg.profiles.items()
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_suffix(".tmp")
        staging.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        staging.replace(self.path)
        _restrict_permissions(self.path)

    def add_or_update_profile(self, profile: Profile, *, set_default: bool = False) -> ConfigData:
        """Persist ``profile``; the first profile stored becomes the default."""

        cfg = self.load()
        cfg.profiles[profile.name] = profile
        if set_default or not cfg.default_profile:
            cfg.default_profile = profile.name
        self.save(cfg)
        return cfg

    def set_default_profile(self, name: str) -> ConfigData:
        cfg = self.load()
        if name not in cfg.profiles:
            raise KeyError(f"Profile '{name}' not found")
        cfg.default_profile = name
        self.save(cfg)
        return cfg

    def delete_profile(self, name: str) -> ConfigData:
        cfg = self.load()
        if cfg.profiles.pop(name, None) is None:
            raise KeyError(f"Profile '{name}' not found")
        if cfg.default_profile == name:
            cfg.default_profile = None
        self.save(cfg)
        return cfg

    def default(self) -> Profile | None:
        cfg = self.load()
        return cfg.profiles.get(cfg.default_profile or "")


__all__ = [
    "CONFIG_PATH",
    "ConfigData",
    "ConfigStore",
    "EncryptedConfigError",
    "FieldCipher",
    "Profile",
    "SENSITIVE_FIELDS",
    "current_cipher",
]
