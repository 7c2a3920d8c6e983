"""Configuration loading for the API tester.

Endpoints come from a JSON file:

    {
      "endpoints": [
        {
          "name": "Orders API",
          "url": "https://api.example.com/orders",
          "method": "POST",
          "clientId": "...",
          "clientSecret": "...",
          "tenantId": "...",
          "scope": "api://orders/.default",
          "requestBody": {"key": "value"}
        }
      ]
    }

Run settings (timeouts and authority) come from command-line flags, with
environment variables as a fallback:

    API_TESTER_AUTH_TIMEOUT=30
    API_TESTER_REQUEST_TIMEOUT=30
    API_TESTER_AUTHORITY=https://login.microsoftonline.com
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from api_tester.auth import DEFAULT_AUTHORITY
from api_tester.models import EndpointDefinition, HttpMethod


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_TIMEOUT = 30.0

# JSON key -> EndpointDefinition attribute, in validation order
REQUIRED_FIELDS = [
    ("name", "name"),
    ("url", "url"),
    ("method", "method"),
    ("clientId", "client_id"),
    ("clientSecret", "client_secret"),
    ("tenantId", "tenant_id"),
    ("scope", "scope"),
]


@dataclass(frozen=True)
class RunSettings:
    """Settings shared by every endpoint test in a run."""

    auth_timeout: float = DEFAULT_TIMEOUT
    request_timeout: float = DEFAULT_TIMEOUT
    authority: str = DEFAULT_AUTHORITY
    verbose: bool = False


def validate_endpoint(index: int, raw: Any) -> EndpointDefinition:
    """Validate one raw endpoint entry from the config file.

    Args:
        index: Position of the entry in the endpoints list.
        raw: The decoded JSON value.

    Returns:
        The validated EndpointDefinition.

    Raises:
        ConfigError: If a required field is missing or empty, the method
            is not supported, or the request body is not an object.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"endpoint {index}: must be a JSON object")

    label = raw.get("name") if isinstance(raw.get("name"), str) else ""
    values: dict[str, str] = {}

    for key, attr in REQUIRED_FIELDS:
        value = raw.get(key)
        if not isinstance(value, str) or not value:
            raise ConfigError(f"endpoint {index} ({label}): {key} is required")
        values[attr] = value

    try:
        method = HttpMethod(values["method"])
    except ValueError:
        raise ConfigError(
            f"endpoint {index} ({label}): invalid HTTP method: {values['method']} "
            "(must be GET, POST, PUT, PATCH, or DELETE)"
        ) from None

    request_body = raw.get("requestBody")
    if request_body is not None and not isinstance(request_body, dict):
        raise ConfigError(
            f"endpoint {index} ({label}): requestBody must be a JSON object"
        )

    return EndpointDefinition(
        name=values["name"],
        url=values["url"],
        method=method,
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        tenant_id=values["tenant_id"],
        scope=values["scope"],
        request_body=request_body,
    )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> list[EndpointDefinition]:
    """Load and validate endpoint definitions from a JSON file.

    Every entry is validated before anything is returned, so a single bad
    entry fails the whole load.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Endpoint definitions in the order they appear in the file.

    Raises:
        ConfigError: If the file doesn't exist, contains invalid JSON,
                    defines no endpoints, or any entry is invalid.
    """
    path = Path(config_path)

    if not path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Invalid configuration: top level must be a JSON object")

    raw_endpoints = data.get("endpoints")
    if raw_endpoints is None:
        raw_endpoints = []
    if not isinstance(raw_endpoints, list):
        raise ConfigError("Invalid configuration: endpoints must be a list")
    if not raw_endpoints:
        raise ConfigError("Invalid configuration: no endpoints defined in configuration")

    try:
        return [validate_endpoint(i, raw) for i, raw in enumerate(raw_endpoints)]
    except ConfigError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _timeout_setting(
    name: str,
    flag_value: Optional[float],
    env: Mapping[str, str],
    env_var: str,
) -> float:
    if flag_value is not None:
        value: Any = flag_value
    elif env.get(env_var):
        value = env[env_var]
    else:
        return DEFAULT_TIMEOUT

    try:
        seconds = float(value)
    except ValueError:
        raise ConfigError(f"Invalid {name}: {value!r} is not a number") from None
    if seconds <= 0:
        raise ConfigError(f"Invalid {name}: must be greater than zero")
    return seconds


def load_settings(
    auth_timeout: Optional[float] = None,
    request_timeout: Optional[float] = None,
    authority: Optional[str] = None,
    verbose: bool = False,
    env: Optional[Mapping[str, str]] = None,
) -> RunSettings:
    """Resolve run settings from flags, then environment, then defaults.

    Raises:
        ConfigError: If a timeout is not a positive number.
    """
    if env is None:
        env = os.environ

    return RunSettings(
        auth_timeout=_timeout_setting(
            "auth timeout", auth_timeout, env, "API_TESTER_AUTH_TIMEOUT"
        ),
        request_timeout=_timeout_setting(
            "request timeout", request_timeout, env, "API_TESTER_REQUEST_TIMEOUT"
        ),
        authority=authority or env.get("API_TESTER_AUTHORITY") or DEFAULT_AUTHORITY,
        verbose=verbose,
    )
