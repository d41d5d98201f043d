"""Config Loader - Loads client configuration from YAML.

The file is found from an explicit path or, failing that, the
PILLOW_REQUEST_CONFIG environment variable. String values may reference the
environment as ${VAR} (required) or ${VAR:-fallback} (optional), so tokens
and hosts need not be written into the file. The result is validated against
ClientConfig.

Example:
    use_https: true
    timeout_ms: 5000
    headers:
      Authorization: "Bearer ${API_TOKEN}"
      X-Env: "${DEPLOY_ENV:-dev}"
    transport:
      ca_bundle: ${CA_BUNDLE:-}
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pillow_request.models import ClientConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "PILLOW_REQUEST_CONFIG"

# ${NAME} or ${NAME:-fallback}; the fallback may be empty.
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")


class ConfigError(Exception):
    """Raised when configuration loading fails."""


def load_client_config(config_path: Path | str | None = None) -> ClientConfig:
    """Load a ClientConfig from YAML.

    Args:
        config_path: YAML file to read. When None, the path is taken from
                     PILLOW_REQUEST_CONFIG; if that is unset too, defaults
                     are returned.

    Raises:
        ConfigError: The file is missing, is not a YAML mapping, references an
                     unset variable without a fallback, or fails validation.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV)
        if not config_path:
            logger.debug("No client config given and %s unset; using defaults", CONFIG_PATH_ENV)
            return ClientConfig()

    path = Path(config_path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if document is None:
        document = {}
    elif not isinstance(document, dict):
        raise ConfigError("Config file must be a YAML mapping")

    try:
        config = ClientConfig.model_validate(_expand(document))
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e

    logger.debug("Loaded client config from %s", path)
    return config


def _expand(node: Any) -> Any:
    """Resolve environment references in every string of a YAML tree.

    Only values are expanded; mapping keys (header names, field names) are
    kept as written.
    """
    if isinstance(node, dict):
        return {key: _expand(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_expand(item) for item in node]
    if isinstance(node, str):
        return _ENV_REFERENCE.sub(_lookup, node)
    return node


def _lookup(match: re.Match[str]) -> str:
    name = match.group("name")
    value = os.environ.get(name)
    if value is not None:
        return value
    fallback = match.group("fallback")
    if fallback is None:
        raise ConfigError(f"Environment variable '{name}' is not set")
    return fallback
