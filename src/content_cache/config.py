"""Runtime configuration for the content cache.

Reads remote, storage and mode settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CONTENT_CACHE_GRAPHQL_URL: GraphQL endpoint (optional; unset means offline)
    CONTENT_CACHE_AUTH_TOKEN: Bearer token for the endpoint (optional)
    CONTENT_CACHE_USERNAME / CONTENT_CACHE_PASSWORD: Basic auth (optional)
    CONTENT_CACHE_INSECURE: Skip SSL verification (optional, default: false)
    CONTENT_CACHE_TIMEOUT: Remote timeout in seconds (optional, default: 10)
    CONTENT_CACHE_MAX_PARALLEL_REQUESTS: Max parallel remote calls (default: 5)
    GRAPHQL_MODE: GETMODE, SETMODE or CRUDMODE (default: GETMODE)
    CONTENT_CACHE_BACKEND: JSONDB, SQLITEDB, MEMORYDB or FALSE (default: JSONDB)
    CONTENT_CACHE_BACKUP_BACKEND: Backup backend (default: FALSE)
    JSON_DATA_PATH: JSON snapshot path
    SQLITE_DATA_PATH: SQLite database path
    CONTENT_CACHE_QUEUE_PATH: Mutation queue file
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_JSON_PATH = "data/json/full.json"
DEFAULT_SQLITE_PATH = "data/db/content.sqlite3"
DEFAULT_QUEUE_PATH = "data/queue.json"


@dataclass
class Config:
    graphql_url: str | None = None
    auth_token: str | None = None
    username: str | None = None
    password: str | None = None
    insecure: bool = False
    debug: bool = False
    timeout: float = 10.0
    max_parallel_requests: int = 5
    mode: str = "GETMODE"
    backend: str = "JSONDB"
    backup_backend: str = "FALSE"
    json_path: str = DEFAULT_JSON_PATH
    sqlite_path: str = DEFAULT_SQLITE_PATH
    queue_path: str | None = DEFAULT_QUEUE_PATH


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    A missing GraphQL URL is valid: the cache then runs offline and queues
    every permitted write.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the URL format is invalid or a numeric value is out
            of range.
    """
    if config.graphql_url:
        config.graphql_url = config.graphql_url.strip()

        if not config.graphql_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid GraphQL URL '{config.graphql_url}': must start with http:// or https://"
            )

        parsed = urlparse(config.graphql_url)
        if not parsed.hostname:
            raise ValueError(
                f"Invalid GraphQL URL '{config.graphql_url}': URL must include a hostname"
            )
    else:
        config.graphql_url = None
        logger.warning(
            "No GraphQL URL configured; running offline. Writes will be queued."
        )

    if not (0.1 <= config.timeout <= 300):
        raise ValueError(
            f"Invalid timeout '{config.timeout}': must be between 0.1 and 300 seconds"
        )

    if not (1 <= config.max_parallel_requests <= 100):
        raise ValueError(
            f"Invalid max_parallel_requests '{config.max_parallel_requests}': must be between 1 and 100"
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _resolve_number(
    env_key: str,
    fallbacks: dict,
    fb_key: str,
    default: float,
    cast: type,
):
    raw = os.getenv(env_key)
    if raw is not None:
        try:
            return cast(raw)
        except ValueError:
            raise ValueError(
                f"Invalid {env_key} '{raw}': must be a number"
            ) from None
    if fallbacks.get(fb_key) is not None:
        return cast(fallbacks[fb_key])
    return default


def load_config(
    url: str | None = None,
    token: str | None = None,
    mode: str | None = None,
    backend: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override GraphQL endpoint.
        token: Override bearer token.
        mode: Override mode (GETMODE, SETMODE, CRUDMODE).
        backend: Override storage backend identifier.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict built from the YAML config sections by
            ``to_fallbacks()``.  Used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is invalid after checking all sources.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > default ---

    graphql_url = (
        url or os.getenv("CONTENT_CACHE_GRAPHQL_URL") or fb.get("url")
    )
    auth_token = (
        token or os.getenv("CONTENT_CACHE_AUTH_TOKEN") or fb.get("auth_token")
    )
    username = os.getenv("CONTENT_CACHE_USERNAME") or fb.get("username")
    password = os.getenv("CONTENT_CACHE_PASSWORD") or fb.get("password")
    final_mode = mode or os.getenv("GRAPHQL_MODE") or fb.get("mode") or "GETMODE"
    final_backend = (
        backend
        or os.getenv("CONTENT_CACHE_BACKEND")
        or fb.get("backend")
        or "JSONDB"
    )
    backup_backend = (
        os.getenv("CONTENT_CACHE_BACKUP_BACKEND")
        or fb.get("backup_backend")
        or "FALSE"
    )
    json_path = (
        os.getenv("JSON_DATA_PATH") or fb.get("json_path") or DEFAULT_JSON_PATH
    )
    sqlite_path = (
        os.getenv("SQLITE_DATA_PATH")
        or fb.get("sqlite_path")
        or DEFAULT_SQLITE_PATH
    )
    queue_path = (
        os.getenv("CONTENT_CACHE_QUEUE_PATH")
        or fb.get("queue_path")
        or DEFAULT_QUEUE_PATH
    )
    if queue_path.strip().lower() in ("none", "false", ":memory:"):
        # In-memory queue: pending writes are lost on restart
        queue_path = None

    # --- Boolean fields: CLI > env > YAML > default ---

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("CONTENT_CACHE_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("CONTENT_CACHE_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric fields: env > YAML > default ---

    timeout = _resolve_number(
        "CONTENT_CACHE_TIMEOUT", fb, "timeout", 10.0, float
    )
    max_parallel = _resolve_number(
        "CONTENT_CACHE_MAX_PARALLEL_REQUESTS",
        fb,
        "max_parallel_requests",
        5,
        int,
    )

    config = Config(
        graphql_url=graphql_url,
        auth_token=auth_token,
        username=username,
        password=password,
        insecure=final_insecure,
        debug=final_debug,
        timeout=timeout,
        max_parallel_requests=max_parallel,
        mode=final_mode.strip(),
        backend=final_backend.strip(),
        backup_backend=backup_backend.strip(),
        json_path=json_path,
        sqlite_path=sqlite_path,
        queue_path=queue_path,
    )

    validate_config(config)

    return config
