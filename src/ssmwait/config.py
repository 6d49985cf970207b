"""Configuration loader for ssmwait."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

DEFAULT_MAX_RETRIES = 50
DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_POLL_INTERVAL = 0.3
TRANSPORTS = ("ssm", "ssh")


@dataclass
class Defaults:
    """SSH connection settings shared by every target."""

    user: str = "root"
    port: int = 22
    ssh_key: Path = field(default_factory=lambda: Path("~/.ssh/id_rsa").expanduser())
    connect_timeout: int = 30


@dataclass
class Config:
    """Everything one dispatch-and-wait run needs."""

    document_name: str
    target_ids: list[str]
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    transport: str = "ssm"
    region: str | None = None
    defaults: Defaults = field(default_factory=Defaults)
    documents: dict[str, list[str]] = field(default_factory=dict)
    log_dir: Path | None = None
    source_path: Path | None = None  # Path to the original config file

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build a config from the Lambda-style environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            document_name=env.get("SSM_DOCUMENT", "").strip(),
            target_ids=parse_targets(env.get("INSTANCE_IDS", "")),
            max_retries=_get_int(env, "MAX_SSM_WAIT_RETRIES", DEFAULT_MAX_RETRIES),
            timeout_seconds=_get_int(env, "SSM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            poll_interval=_get_float(env, "SSM_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            region=env.get("SSM_REGION") or env.get("AWS_REGION") or None,
        )

    def validate(self) -> None:
        """Check required values. Called before any remote call is made."""
        if not self.document_name or not self.target_ids:
            raise ConfigurationError(
                "SSM_DOCUMENT and INSTANCE_IDS must be set (document and targets)"
            )
        if self.max_retries <= 0:
            raise ConfigurationError(
                f"max_retries must be a positive integer, got {self.max_retries}"
            )
        if self.poll_interval < 0:
            raise ConfigurationError(
                f"poll_interval must not be negative, got {self.poll_interval}"
            )
        if self.transport not in TRANSPORTS:
            raise ConfigurationError(
                f"Unknown transport '{self.transport}', expected one of {', '.join(TRANSPORTS)}"
            )
        if self.transport == "ssh" and self.document_name not in self.documents:
            raise ConfigurationError(
                f"Document '{self.document_name}' is not defined in 'documents'"
            )


def parse_targets(raw: str | list[str] | None) -> list[str]:
    """Split a comma-delimited target list, dropping blanks and duplicates."""
    if not raw:
        return []
    items = raw.split(",") if isinstance(raw, str) else [str(item) for item in raw]

    targets: list[str] = []
    for item in items:
        item = item.strip()
        if item and item not in targets:
            targets.append(item)
    return targets


def load_config(config_path: str | Path) -> Config:
    """Load configuration from a YAML file."""
    config_path = Path(config_path).resolve()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")

    config = _parse_config(raw)
    config.source_path = config_path
    return config


def _parse_defaults(raw: dict[str, Any]) -> Defaults:
    """Parse the defaults section."""
    defaults_raw = raw.get("defaults") or {}
    ssh_key_str = defaults_raw.get("ssh_key", "~/.ssh/id_rsa")
    return Defaults(
        user=defaults_raw.get("user", "root"),
        port=_as_int(defaults_raw.get("port", 22), "defaults.port"),
        ssh_key=Path(ssh_key_str).expanduser(),
        connect_timeout=_as_int(
            defaults_raw.get("connect_timeout", 30), "defaults.connect_timeout"
        ),
    )


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw YAML data into Config object."""
    log_dir = raw.get("log_dir", "logs")

    return Config(
        document_name=str(raw.get("document") or "").strip(),
        target_ids=parse_targets(raw.get("targets")),
        max_retries=_as_int(raw.get("max_retries", DEFAULT_MAX_RETRIES), "max_retries"),
        timeout_seconds=_as_int(raw.get("timeout", DEFAULT_TIMEOUT_SECONDS), "timeout"),
        poll_interval=_as_float(
            raw.get("poll_interval", DEFAULT_POLL_INTERVAL), "poll_interval"
        ),
        transport=str(raw.get("transport", "ssm")),
        region=raw.get("region"),
        defaults=_parse_defaults(raw),
        documents=_parse_documents(raw.get("documents") or {}),
        log_dir=Path(log_dir).expanduser().resolve() if log_dir else None,
    )


def _parse_documents(documents_raw: dict[str, Any]) -> dict[str, list[str]]:
    """Parse named documents. A document is a command or a list of commands."""
    documents = {}
    for name, commands in documents_raw.items():
        if isinstance(commands, str):
            commands = [commands]
        if not commands:
            raise ConfigurationError(f"Document '{name}' must have at least one command")
        documents[str(name)] = [str(cmd) for cmd in commands]
    return documents


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or value == "":
        return default
    return _as_int(value, name)


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if value is None or value == "":
        return default
    return _as_float(value, name)
