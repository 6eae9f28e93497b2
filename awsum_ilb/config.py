"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
import types
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .provisioning.models import ServiceIdentity

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

# ELBv2 names: 1-32 alphanumerics or hyphens, no leading/trailing hyphen
_RESOURCE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,30}[A-Za-z0-9])?$")

SUPPORTED_PROTOCOLS = ("HTTP", "HTTPS")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class AWSConfig:
    region: str = ""  # empty = boto3 default region resolution
    credential_profile: str = ""  # empty = use default boto3 credential chain


@dataclass(frozen=True)
class ServiceConfig:
    """Options for one reconciliation of a load-balanced service."""

    name: str = ""
    instance_name: str = ""  # substring matched against the instance Name tag
    traffic_port: int = 80
    traffic_protocol: str = "HTTP"
    listener_port: int = 80
    listener_protocol: str = "HTTP"
    ip_protocol: str = "tcp"  # underlying IP protocol for security group rules
    certificate_names: list[str] = field(default_factory=list)
    domain_names: list[str] = field(default_factory=list)
    private_zone: bool = False

    @property
    def identity(self) -> ServiceIdentity:
        return ServiceIdentity(self.name)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    aws: AWSConfig = field(default_factory=AWSConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get_dataclass_type(ft: Any) -> type | None:
    """Return the underlying dataclass type from a type annotation (handles Optional/X|None)."""
    if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__"):
        return ft
    if isinstance(ft, types.UnionType):
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    origin = getattr(ft, "__origin__", None)
    if origin is typing.Union:
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    return None


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        ft = field_types[key]
        # Resolve string annotations to actual types in the module scope
        if isinstance(ft, str):
            ft = eval(ft, globals(), {cls.__name__: cls})  # noqa: S307
        dc_type = _get_dataclass_type(ft)
        if dc_type is not None and isinstance(value, dict):
            kwargs[key] = _build_nested(dc_type, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def _as_name_list(value: Any) -> Any:
    """Wrap a single YAML scalar name as a one-item list. Other non-lists are left for validate."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


def normalize_service(service: ServiceConfig) -> ServiceConfig:
    """Upper-case ELBv2 protocols, lower-case the IP protocol and wrap single names as lists."""
    return ServiceConfig(
        name=str(service.name),
        instance_name=str(service.instance_name),
        traffic_port=service.traffic_port,
        traffic_protocol=str(service.traffic_protocol).upper(),
        listener_port=service.listener_port,
        listener_protocol=str(service.listener_protocol).upper(),
        ip_protocol=str(service.ip_protocol).lower(),
        certificate_names=_as_name_list(service.certificate_names),
        domain_names=_as_name_list(service.domain_names),
        private_zone=service.private_zone,
    )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    config = AppConfig(aws=config.aws, service=normalize_service(config.service), logging=config.logging)
    validate(config)
    return config


def validate(config: AppConfig) -> None:
    """Validate configuration values."""
    service = config.service

    if not service.name:
        raise ConfigError("service.name is required")

    resource_name = service.identity.resource_name
    if not _RESOURCE_NAME_PATTERN.match(resource_name):
        raise ConfigError(
            f"service.name '{service.name}' produces invalid resource name '{resource_name}' "
            "(at most 32 alphanumeric or hyphen characters, not ending in a hyphen)"
        )

    if not service.instance_name:
        raise ConfigError("service.instance_name is required (it selects the instances to load balance)")

    for key in ("traffic_port", "listener_port"):
        port = getattr(service, key)
        if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
            raise ConfigError(f"service.{key} must be an integer between 1 and 65535")

    for key in ("traffic_protocol", "listener_protocol"):
        if getattr(service, key) not in SUPPORTED_PROTOCOLS:
            raise ConfigError(f"service.{key} must be one of: {', '.join(SUPPORTED_PROTOCOLS)}")

    if not service.ip_protocol:
        raise ConfigError("service.ip_protocol must not be empty")

    for key in ("certificate_names", "domain_names"):
        names = getattr(service, key)
        if not isinstance(names, list) or not all(isinstance(n, str) and n for n in names):
            raise ConfigError(f"service.{key} must be a list of non-empty strings")

    if not isinstance(service.private_zone, bool):
        raise ConfigError("service.private_zone must be true or false")

    if service.listener_protocol == "HTTPS" and not service.certificate_names:
        raise ConfigError("service.certificate_names is required for an HTTPS listener")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
