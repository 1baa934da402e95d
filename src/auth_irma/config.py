"""
Configuration for the IRMA authentication bridge.

Process settings come from environment variables; the bridge configuration
(URLs, attribute mapping, key material) is a YAML file named by ``CONFIG``.
The loaded ``BridgeConfig`` is immutable and shared by all request handlers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .attributes import AttributeMapper
from .exceptions import ConfigurationError
from .jwe import DEFAULT_RESULT_VALIDITY, Encrypter, JweEncrypter, JwsSigner, Signer
from .keys import KeyType

logger = logging.getLogger(__name__)


class KeyConfig(BaseModel):
    """PEM key tagged with its algorithm family."""

    model_config = ConfigDict(frozen=True)

    type: KeyType
    key: str


class IrmaServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    auth_token: str | None = None


class RawConfig(BaseModel):
    """Schema of the YAML configuration file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    server_url: str
    internal_url: str | None = None
    ui_irma_url: str
    attributes: dict[str, list[str]]
    irma_server: IrmaServerConfig
    encryption_pubkey: KeyConfig
    signing_privkey: KeyConfig
    sentry_dsn: str | None = None
    result_validity: int = Field(default=DEFAULT_RESULT_VALIDITY, gt=0)


@dataclass(frozen=True)
class BridgeConfig:
    """Validated bridge configuration with key material loaded."""

    server_url: str
    internal_url: str
    ui_irma_url: str
    attributes: AttributeMapper
    irma_server: IrmaServerConfig
    encrypter: Encrypter = field(repr=False)
    signer: Signer = field(repr=False)
    sentry_dsn: str | None = field(default=None, repr=False)
    result_validity: int = DEFAULT_RESULT_VALIDITY

    @classmethod
    def from_raw(cls, raw: RawConfig) -> BridgeConfig:
        server_url = raw.server_url.rstrip("/")
        return cls(
            server_url=server_url,
            internal_url=(raw.internal_url or server_url).rstrip("/"),
            ui_irma_url=raw.ui_irma_url,
            attributes=AttributeMapper(raw.attributes),
            irma_server=raw.irma_server,
            encrypter=JweEncrypter.from_pem(raw.encryption_pubkey.type, raw.encryption_pubkey.key),
            signer=JwsSigner.from_pem(raw.signing_privkey.type, raw.signing_privkey.key),
            sentry_dsn=raw.sentry_dsn,
            result_validity=raw.result_validity,
        )

    @classmethod
    def from_dict(cls, data: Any) -> BridgeConfig:
        try:
            raw = RawConfig.model_validate(data)
        except ValidationError as e:
            # Only field locations are reported, values may be secrets
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigurationError(f"Invalid configuration fields: {fields}") from None
        return cls.from_raw(raw)

    @classmethod
    def from_string(cls, text: str) -> BridgeConfig:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError:
            raise ConfigurationError("Could not parse configuration") from None
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> BridgeConfig:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Could not open configuration {path}") from e
        return cls.from_string(text)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_port(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        port = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a port number, got {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"{name} must be between 1 and 65535, got {port}")
    return port


@dataclass
class ServiceConfig:
    """Process level settings."""

    config_path: str | None = field(default_factory=lambda: os.getenv("CONFIG"))
    host: str = field(default_factory=lambda: os.getenv("AUTH_IRMA_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_port("AUTH_IRMA_PORT", "8000"))
    metrics_enabled: bool = field(default_factory=lambda: _env_flag("METRICS_ENABLED", "true"))

    @classmethod
    def from_env(cls) -> ServiceConfig:
        return cls()


def load_config(service: ServiceConfig | None = None) -> BridgeConfig:
    """
    Load the bridge configuration named by the ``CONFIG`` environment variable.

    Raises:
        ConfigurationError: If no file is configured or it cannot be loaded
    """
    service = service or ServiceConfig.from_env()
    if not service.config_path:
        raise ConfigurationError("No configuration file specified")
    config = BridgeConfig.from_file(service.config_path)
    logger.info(
        "Loaded configuration with %d attributes from %s",
        len(config.attributes),
        service.config_path,
    )
    return config
