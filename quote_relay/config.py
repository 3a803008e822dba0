import os
from dataclasses import dataclass
from pathlib import Path


def _load_dotenv(path: Path) -> None:
    """Very small .env loader (KEY=VALUE), no external dependency.

    - Ignores empty lines and lines starting with '#'
    - Does not override existing environment variables
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("\"'")  # allow quoted values
        if not key:
            continue
        os.environ.setdefault(key, value)


def _get_env_str(key: str, *, default: str | None = None) -> str:
    value = os.getenv(key)
    if value is None:
        if default is None:
            raise ValueError(f"Missing required env var: {key}")
        return default
    value = value.strip()
    if not value:
        raise ValueError(f"Empty required env var: {key}")
    return value


def _get_env_int(key: str, *, default: int | None = None, minimum: int | None = None) -> int:
    value = os.getenv(key)
    if value is None:
        if default is None:
            raise ValueError(f"Missing required env var: {key}")
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid int env var {key}={value!r}") from exc
    if minimum is not None and parsed < minimum:
        raise ValueError(f"Env var {key}={parsed} must be >= {minimum}")
    return parsed


def _get_env_bool(key: str, *, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "y", "on"}:
        return True
    if value in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid bool env var {key}={value!r} (use 1/0)")


@dataclass(frozen=True)
class Config:
    # Telegram / Telethon
    tg_api_id: int
    tg_api_hash: str
    tg_session_name: str

    # Identity
    default_account_id: str
    my_name: str

    # Outbound
    quote_cache_limit: int
    text_limit: int
    max_media_bytes: int

    # Safety / ops
    dry_run: bool
    log_level: str

    # Plugin toggles
    enable_ping: bool
    enable_echo: bool

    # Local media directory; unset means local paths are never read
    media_root: str | None = None

    @staticmethod
    def load() -> "Config":
        _load_dotenv(Path(".env"))

        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

        return Config(
            tg_api_id=_get_env_int("TG_API_ID"),
            tg_api_hash=_get_env_str("TG_API_HASH"),
            tg_session_name=_get_env_str("TG_SESSION_NAME", default="quote_relay_session"),
            default_account_id=_get_env_str("DEFAULT_ACCOUNT_ID", default="default"),
            my_name=os.getenv("MY_NAME", "").strip(),
            quote_cache_limit=_get_env_int("QUOTE_CACHE_LIMIT", default=1000, minimum=1),
            text_limit=_get_env_int("TEXT_LIMIT", default=4096, minimum=1),
            max_media_bytes=_get_env_int("MAX_MEDIA_BYTES", default=50 * 1024 * 1024, minimum=1),
            dry_run=_get_env_bool("DRY_RUN", default=False),
            log_level=log_level,
            enable_ping=_get_env_bool("ENABLE_PING", default=True),
            enable_echo=_get_env_bool("ENABLE_ECHO", default=False),
            media_root=os.getenv("MEDIA_ROOT", "").strip() or None,
        )
