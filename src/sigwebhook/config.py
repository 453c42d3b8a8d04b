"""Signature configuration: user-facing variants, validation and settings.

A :data:`SignatureConfig` is what callers hand to the middleware. It is
resolved once, at setup time, into a :class:`ResolvedConfig` holding the
bytes used for verification. Resolution fails fast with
:class:`~sigwebhook.errors.ConfigError` so a misconfigured deployment never
starts serving traffic.

Settings can also come from the environment with the SIGWEBHOOK_ prefix.
Example: SIGWEBHOOK_ALGORITHM=HS256 SIGWEBHOOK_SECRET=... selects HMAC-SHA256.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from sigwebhook.algorithms import (
    AlgorithmFamily,
    AsymmetricAlgorithm,
    SymmetricAlgorithm,
    family_of,
)
from sigwebhook.errors import ConfigError

logger = structlog.get_logger()


@dataclass(frozen=True)
class SymmetricSignatureConfig:
    """Configuration for HMAC algorithms (HS256, HS384, HS512)."""

    algorithm: SymmetricAlgorithm
    secret: str = field(repr=False)


@dataclass(frozen=True)
class AsymmetricSignatureConfig:
    """Configuration for RSA, RSA-PSS and ECDSA algorithms."""

    algorithm: AsymmetricAlgorithm
    public_key_path: str | Path


SignatureConfig = SymmetricSignatureConfig | AsymmetricSignatureConfig


@dataclass(frozen=True)
class ResolvedConfig:
    """Validated configuration with the verification material loaded.

    Immutable and safe to share between concurrent requests.
    """

    algorithm: str
    verification_material: bytes = field(repr=False)

    @property
    def family(self) -> AlgorithmFamily:
        return family_of(self.algorithm)


def signature_config(
    algorithm: str,
    secret: str | None = None,
    public_key_path: str | Path | None = None,
) -> SignatureConfig:
    """Build the config variant matching the algorithm's family.

    Useful when values come from loosely typed sources such as settings or
    command line options. Missing values are left empty so that
    :func:`resolve_config` reports them.
    """
    family = family_of(algorithm)
    if family is AlgorithmFamily.ASYMMETRIC or (
        family is AlgorithmFamily.UNKNOWN and public_key_path and not secret
    ):
        return AsymmetricSignatureConfig(
            algorithm=algorithm,  # type: ignore[arg-type]
            public_key_path=public_key_path or "",
        )
    return SymmetricSignatureConfig(
        algorithm=algorithm,  # type: ignore[arg-type]
        secret=secret or "",
    )


def resolve_config(config: SignatureConfig) -> ResolvedConfig:
    """Validate a signature config and load its verification material.

    Checks run in a fixed order: algorithm identifier, then the
    family-specific presence check, then existence of the key file.

    Args:
        config: Symmetric or asymmetric signature configuration.

    Returns:
        ResolvedConfig carrying the secret bytes or the public key file bytes.

    Raises:
        ConfigError: If the configuration is unusable.
    """
    algorithm = config.algorithm
    family = family_of(algorithm)

    if family is AlgorithmFamily.UNKNOWN:
        raise ConfigError(f"FATAL: Unknown signature algorithm '{algorithm}'.")

    if family is AlgorithmFamily.SYMMETRIC:
        secret = config.secret if isinstance(config, SymmetricSignatureConfig) else None
        if not secret:
            raise ConfigError(
                f"FATAL: Signature secret must be set for symmetric algorithm '{algorithm}'."
            )
        material = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        return ResolvedConfig(algorithm=algorithm, verification_material=material)

    key_path = (
        config.public_key_path if isinstance(config, AsymmetricSignatureConfig) else None
    )
    if not key_path:
        raise ConfigError(
            "FATAL: Signature public key path must be set for asymmetric "
            f"algorithm '{algorithm}'."
        )

    path = Path(key_path)
    if not path.exists():
        raise ConfigError(f"FATAL: Signature public key path '{key_path}' must exist.")

    try:
        material = path.read_bytes()
    except OSError as e:
        raise ConfigError(
            f"FATAL: Signature public key path '{key_path}' could not be read: {e}"
        ) from e

    return ResolvedConfig(algorithm=algorithm, verification_material=material)


def describe_config(config: ResolvedConfig) -> None:
    """Log the active configuration without revealing the material."""
    logger.info(
        "Webhook request signature verification enabled",
        algorithm=config.algorithm,
        family=config.family.value,
        material_length=len(config.verification_material),
    )


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _normalize_key(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load settings from a YAML or TOML file.

    Keys may be written in snake_case, kebab-case or camelCase
    (``publicKeyPath`` and ``public-key-path`` both map to ``public_key_path``).

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Settings dictionary with normalized keys

    Raises:
        ConfigError: If the file is missing, unreadable, malformed or of an
            unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Config file could not be read {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            data = tomllib.loads(content)
        else:
            raise ConfigError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")

    return {_normalize_key(str(key)): value for key, value in data.items()}


class WebhookSettings(BaseSettings):
    """Webhook receiver settings.

    All settings can be overridden via environment variables:
    - SIGWEBHOOK_ALGORITHM: JWA algorithm identifier (HS256, RS256, ...)
    - SIGWEBHOOK_SECRET: Shared secret for HMAC algorithms
    - SIGWEBHOOK_PUBLIC_KEY_PATH: PEM public key for asymmetric algorithms
    - SIGWEBHOOK_HOST / SIGWEBHOOK_PORT / SIGWEBHOOK_PATH: receiver binding
    - SIGWEBHOOK_LOG_LEVEL: debug, info, warning or error
    """

    model_config = SettingsConfigDict(
        env_prefix="SIGWEBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    algorithm: str | None = Field(
        default=None,
        description="JWA signature algorithm identifier.",
    )
    secret: SecretStr | None = Field(
        default=None,
        description="Shared secret for symmetric algorithms.",
    )
    public_key_path: str | None = Field(
        default=None,
        description="Path to the PEM public key for asymmetric algorithms.",
    )
    host: str = Field(
        default="127.0.0.1",
        description="Address the receiver binds to.",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the receiver listens on.",
    )
    path: str = Field(
        default="/webhook",
        description="Route that accepts webhook requests.",
    )
    log_level: str = Field(
        default="info",
        description="Log level (debug, info, warning, error).",
    )

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> WebhookSettings:
        """Create settings from a config file.

        Values from the file take precedence over environment variables;
        non-None ``overrides`` take precedence over both.
        """
        values = load_config_from_file(path)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def signature_config(self) -> SignatureConfig:
        """Build the signature config described by these settings.

        Raises:
            ConfigError: If no algorithm is configured.
        """
        if not self.algorithm:
            raise ConfigError("FATAL: Signature algorithm must be set.")
        secret = self.secret.get_secret_value() if self.secret else None
        return signature_config(
            self.algorithm,
            secret=secret,
            public_key_path=self.public_key_path,
        )


_settings: WebhookSettings | None = None


def get_settings() -> WebhookSettings:
    """Get the process-wide settings instance.

    The instance is created from the environment once and cached. Call
    clear_settings() first to reload it (e.g., in tests).
    """
    global _settings
    if _settings is None:
        _settings = WebhookSettings()
    return _settings


def clear_settings() -> None:
    """Clear the cached settings so the next get_settings() call reloads them."""
    global _settings
    _settings = None
