"""Environment-driven service settings."""

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://services.sentinel-hub.com"


def _env_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()] or default


@dataclass(frozen=True)
class Settings:
    client_id: str | None = None
    client_secret: str | None = None
    base_url: str = DEFAULT_BASE_URL
    auth_timeout_seconds: float = 30.0
    process_timeout_seconds: float = 120.0
    cache_max_age_seconds: float = 3600.0
    token_renew_seconds: float = 3000.0
    cache_sweep_seconds: float = 3600.0
    background_tasks_enabled: bool = True
    cors_origins: tuple[str, ...] = ("*",)
    api_key: str | None = None

    @property
    def sentinel_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from environment variables, falling back to defaults."""
        return cls(
            client_id=_env_str("SENTINEL_CLIENT_ID"),
            client_secret=_env_str("SENTINEL_CLIENT_SECRET"),
            base_url=(_env_str("SENTINEL_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            auth_timeout_seconds=_env_float("SENTINEL_AUTH_TIMEOUT_SECONDS", 30.0),
            process_timeout_seconds=_env_float("SENTINEL_PROCESS_TIMEOUT_SECONDS", 120.0),
            cache_max_age_seconds=_env_float("FLOODTWIN_CACHE_MAX_AGE_SECONDS", 3600.0),
            token_renew_seconds=_env_float("FLOODTWIN_TOKEN_RENEW_SECONDS", 3000.0),
            cache_sweep_seconds=_env_float("FLOODTWIN_CACHE_SWEEP_SECONDS", 3600.0),
            background_tasks_enabled=_env_bool("FLOODTWIN_BACKGROUND_TASKS_ENABLED", True),
            cors_origins=tuple(_env_list("FLOODTWIN_CORS_ORIGINS", ["*"])),
            api_key=_env_str("FLOODTWIN_API_KEY"),
        )
