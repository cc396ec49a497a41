"""Configuration helpers for the ArDrive bridge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_TOOL_NAME = "sugar-cli"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / DEFAULT_TOOL_NAME / "ardrive.toml"
DEFAULT_BINARY_NAME = "ardrive"
DEFAULT_VENDORED_PATH = "node_modules/.bin/ardrive"
DEFAULT_GATEWAY = "https://arweave.net"
DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_NODE_ENV = "production"

GATEWAY_ENV_VAR = "ARDRIVE_GATEWAY"
BINARY_ENV_VAR = "ARDRIVE_BINARY"
TIMEOUT_ENV_VAR = "ARDRIVE_TIMEOUT"


@dataclass(frozen=True)
class BridgeConfig:
    tool_name: str = DEFAULT_TOOL_NAME
    binary_name: str = DEFAULT_BINARY_NAME
    vendored_path: str = DEFAULT_VENDORED_PATH
    gateway: str = DEFAULT_GATEWAY
    timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS
    node_env: str = DEFAULT_NODE_ENV


class ConfigError(ValueError):
    """Raised when bridge config is invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _to_timeout(value: Any, field_name: str) -> float | None:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a number of seconds")
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be a number of seconds") from exc
    if seconds < 0:
        raise ConfigError(f"{field_name} must be >= 0 (0 disables the timeout)")
    return seconds or None


def _non_empty(value: Any, field_name: str) -> str:
    text = str(value).strip()
    if not text:
        raise ConfigError(f"{field_name} must not be empty")
    return text


def load_bridge_config(path: str | Path | None = None) -> BridgeConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    parsed: dict[str, Any] = _load_toml(config_path) if config_path.exists() else {}

    section = parsed.get("ardrive")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[ardrive] must be a table")

    tool_name = _non_empty(source.get("tool_name", DEFAULT_TOOL_NAME), "tool_name")
    if "/" in tool_name or "\\" in tool_name:
        raise ConfigError("tool_name must not contain path separators")

    env_binary = os.getenv(BINARY_ENV_VAR)
    binary_name = (
        env_binary.strip()
        if env_binary and env_binary.strip()
        else _non_empty(source.get("binary_name", DEFAULT_BINARY_NAME), "binary_name")
    )

    vendored_path = _non_empty(source.get("vendored_path", DEFAULT_VENDORED_PATH), "vendored_path")

    env_gateway = os.getenv(GATEWAY_ENV_VAR)
    configured_gateway = str(source.get("gateway", DEFAULT_GATEWAY)).strip()
    gateway = env_gateway.strip() if env_gateway and env_gateway.strip() else configured_gateway
    if not gateway.startswith(("http://", "https://")):
        raise ConfigError("gateway must be an http(s) URL")

    env_timeout = os.getenv(TIMEOUT_ENV_VAR)
    if env_timeout and env_timeout.strip():
        timeout_seconds = _to_timeout(env_timeout.strip(), TIMEOUT_ENV_VAR)
    else:
        timeout_seconds = _to_timeout(
            source.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS), "timeout_seconds"
        )

    node_env = _non_empty(source.get("node_env", DEFAULT_NODE_ENV), "node_env")

    return BridgeConfig(
        tool_name=tool_name,
        binary_name=binary_name,
        vendored_path=vendored_path,
        gateway=gateway.rstrip("/"),
        timeout_seconds=timeout_seconds,
        node_env=node_env,
    )
