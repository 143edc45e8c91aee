"""Simplified configuration for the standalone MCP server.

Reads Framer connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    FRAMER_URL: Framer project URL or project ID (required)
    FRAMER_API_KEY: Framer Server API key (required)
    FRAMER_API_ENDPOINT: JSON-RPC endpoint of the Framer Server API (optional)
    FRAMER_DEBUG: Enable debug logging (optional, default: false)
    FRAMER_MAX_PARALLEL_REQUESTS: Max concurrent API requests (optional, default: 5)
    FRAMER_RESOLUTION_ATTEMPTS: Post-write resolution attempts (optional, default: 4)
    FRAMER_RESOLUTION_BACKOFF_MS: Linear backoff step between attempts (optional, default: 350)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_ENDPOINT = "https://api.framer.com/server/rpc"


@dataclass
class Config:
    framer_url: str
    api_key: str
    api_endpoint: str = DEFAULT_API_ENDPOINT
    debug: bool = False
    max_parallel_requests: int = 5
    resolution_attempts: int = 4
    resolution_backoff_ms: int = 350


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    The project URL may be a full ``https://framer.com/projects/<id>`` URL
    or a bare project ID, so only the API endpoint is checked for a scheme.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the endpoint is malformed or credentials are empty.
    """
    config.framer_url = config.framer_url.strip()
    config.api_key = config.api_key.strip()
    config.api_endpoint = config.api_endpoint.strip()

    if not config.framer_url:
        raise ValueError(
            "Framer URL is empty. Set FRAMER_URL environment variable."
        )

    if not config.api_key:
        raise ValueError(
            "Framer API key cannot be empty. Set FRAMER_API_KEY environment variable."
        )

    if not config.api_endpoint.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API endpoint '{config.api_endpoint}': must start with http:// or https://"
        )

    if not urlparse(config.api_endpoint).hostname:
        raise ValueError(
            f"Invalid API endpoint '{config.api_endpoint}': URL must include a hostname"
        )

    config.api_endpoint = config.api_endpoint.removesuffix("/")

    if config.api_endpoint.startswith("http://"):
        logger.warning(
            "WARNING: API endpoint uses plain HTTP. The API key is sent unencrypted."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_int_setting(
    env_key: str,
    fallbacks: dict,
    fallback_key: str,
    default: int,
    low: int,
    high: int,
) -> int:
    """Resolve an integer setting: env var > YAML fallback > default."""
    raw = os.getenv(env_key)
    if raw is None:
        return int(fallbacks.get(fallback_key, default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    url: str | None = None,
    api_key: str | None = None,
    endpoint: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override project URL.
        api_key: Override API key.
        endpoint: Override JSON-RPC endpoint.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened values from the YAML ``framer`` and
            ``reconcile`` sections, used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If URL or API key is missing after checking all sources,
            or a numeric setting is out of range.
    """
    fb = yaml_fallbacks or {}

    framer_url = url or os.getenv("FRAMER_URL") or fb.get("url")
    if not framer_url:
        raise ValueError(
            "Framer URL not found. Set FRAMER_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yml."
        )

    framer_api_key = api_key or os.getenv("FRAMER_API_KEY") or fb.get("api_key")
    if not framer_api_key:
        raise ValueError(
            "Framer API key not found. Set FRAMER_API_KEY environment variable, "
            "pass --api-key CLI argument, or add 'api_key' to config.yml."
        )

    api_endpoint = (
        endpoint
        or os.getenv("FRAMER_API_ENDPOINT")
        or fb.get("api_endpoint")
        or DEFAULT_API_ENDPOINT
    )

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("FRAMER_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        framer_url=framer_url,
        api_key=framer_api_key,
        api_endpoint=api_endpoint,
        debug=final_debug,
        max_parallel_requests=_get_int_setting(
            "FRAMER_MAX_PARALLEL_REQUESTS",
            fb,
            "max_parallel_requests",
            5,
            1,
            100,
        ),
        resolution_attempts=_get_int_setting(
            "FRAMER_RESOLUTION_ATTEMPTS", fb, "max_attempts", 4, 1, 10
        ),
        resolution_backoff_ms=_get_int_setting(
            "FRAMER_RESOLUTION_BACKOFF_MS", fb, "backoff_ms", 350, 0, 10000
        ),
    )

    validate_config(config)

    return config
