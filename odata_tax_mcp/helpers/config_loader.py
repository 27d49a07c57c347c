"""Configuration loader for the OData tax MCP server.

Load order (later wins):
    1) Built-in defaults (DEFAULT_CONFIG)
    2) $ODATA_CONFIG_PATH, or ./odata_config.yaml if present
    3) .env in the working directory (never overrides variables already set)
    4) Environment variables (ODATA_*)

Invalid values fall back to defaults with a logged warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from odata_tax_mcp.components.filter_builder_comp import LITERAL_POLICIES
from odata_tax_mcp.helpers.dto.filter_dto import LiteralPolicy
from odata_tax_mcp.workflows.build_query_wf import TAX_RETURN_DATA_PATH

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://gst-odata.api.qa.tr-atap-nonprod.aws.thomsonreuters.com"
CONFIG_FILE_NAME = "odata_config.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "odata": {
        "base_url": DEFAULT_BASE_URL,
        "token": "",
        "entity_path": TAX_RETURN_DATA_PATH,
        "timeout_seconds": 30,
    },
    "filters": {
        "literal_policy": "passthrough",
    },
    "logging": {
        "level": "WARNING",
    },
}

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "ODATA_API_URL": ("odata", "base_url"),
    "ODATA_API_TOKEN": ("odata", "token"),
    "ODATA_TIMEOUT": ("odata", "timeout_seconds"),
    "ODATA_LITERAL_POLICY": ("filters", "literal_policy"),
    "ODATA_LOG_LEVEL": ("logging", "level"),
}


@dataclass(frozen=True)
class ODataSettings:
    """Resolved server settings."""

    base_url: str
    token: str
    entity_path: str
    timeout_seconds: float
    literal_policy: LiteralPolicy
    log_level: str

    @property
    def has_token(self) -> bool:
        return bool(self.token)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Override values replace base values. Lists are replaced entirely (not merged).

    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _find_config_file(workspace_root: Path) -> Path | None:
    """Find config file: $ODATA_CONFIG_PATH first, then odata_config.yaml in workspace."""
    env_path = os.getenv("ODATA_CONFIG_PATH")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path
        logger.warning(f"ODATA_CONFIG_PATH points to a missing file: {env_path}")

    candidate = workspace_root / CONFIG_FILE_NAME
    if candidate.exists():
        return candidate

    return None


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load and parse a YAML config file."""
    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config file {config_path}: {e}"
        raise ValueError(msg) from e
    except OSError as e:
        msg = f"Failed to read config file {config_path}: {e}"
        raise ValueError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_key, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_key)
        if value is None or value == "":
            continue
        overrides.setdefault(section, {})[key] = value
    return _deep_merge(config, overrides)


def _validate_config(config: dict) -> list[str]:
    """Validate config against expected structure.

    Returns list of warning messages (empty if valid).

    """
    warnings = []

    known_keys = set(DEFAULT_CONFIG)
    unknown = set(config.keys()) - known_keys
    if unknown:
        warnings.append(f"Unknown config keys: {', '.join(sorted(unknown))}")

    policy = config.get("filters", {}).get("literal_policy")
    if policy not in LITERAL_POLICIES:
        warnings.append(
            f"filters.literal_policy must be one of {', '.join(LITERAL_POLICIES)}, got {policy!r}"
        )

    timeout = config.get("odata", {}).get("timeout_seconds")
    try:
        if float(timeout) <= 0:
            warnings.append(f"odata.timeout_seconds must be positive, got {timeout!r}")
    except (TypeError, ValueError):
        warnings.append(f"odata.timeout_seconds must be a number, got {timeout!r}")

    level = str(config.get("logging", {}).get("level", "")).upper()
    if level not in logging.getLevelNamesMapping():
        warnings.append(f"logging.level is not a logging level: {level!r}")

    return warnings


def _to_settings(config: dict[str, Any]) -> ODataSettings:
    odata = config["odata"]
    defaults = DEFAULT_CONFIG

    policy = config["filters"].get("literal_policy")
    if policy not in LITERAL_POLICIES:
        policy = defaults["filters"]["literal_policy"]

    try:
        timeout = float(odata.get("timeout_seconds"))
        if timeout <= 0:
            raise ValueError(timeout)
    except (TypeError, ValueError):
        timeout = float(defaults["odata"]["timeout_seconds"])

    level = str(config["logging"].get("level", "")).upper()
    if level not in logging.getLevelNamesMapping():
        level = defaults["logging"]["level"]

    return ODataSettings(
        base_url=str(odata.get("base_url") or defaults["odata"]["base_url"]).rstrip("/"),
        token=str(odata.get("token") or ""),
        entity_path=str(odata.get("entity_path") or defaults["odata"]["entity_path"]),
        timeout_seconds=timeout,
        literal_policy=policy,
        log_level=level,
    )


def load_config(workspace_root: Path | None = None, *, load_env_file: bool = True) -> ODataSettings:
    """Load settings from defaults, YAML file, .env and environment.

    Args:
        workspace_root: Directory searched for odata_config.yaml and .env (default: cwd)
        load_env_file: Whether to read .env (tests turn this off)

    Returns:
        ODataSettings

    Raises:
        ValueError: If the config file exists but cannot be parsed
    """
    root = workspace_root or Path.cwd()

    if load_env_file:
        load_dotenv(root / ".env", override=False)

    config = _deep_merge(DEFAULT_CONFIG, {})
    config_path = _find_config_file(root)
    if config_path is not None:
        logger.info(f"Using config file: {config_path}")
        config = _deep_merge(config, _load_config_file(config_path))

    config = _apply_env_overrides(config)

    for warning in _validate_config(config):
        logger.warning(f"⚠ {warning} (using default)")

    return _to_settings(config)
