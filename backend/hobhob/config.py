from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw_value: str) -> list[str]:
    return [part.strip() for part in raw_value.split(",") if part.strip()]


def _normalize_env(raw_value: str) -> str:
    normalized = raw_value.strip().lower()
    return "production" if normalized == "production" else "development"


def _is_permissive_origin(value: str) -> bool:
    normalized = value.strip().lower()
    if not normalized:
        return False
    if normalized == "*":
        return True
    return "://*" in normalized


def _is_permissive_origin_regex(value: str) -> bool:
    normalized = value.strip().replace(" ", "")
    if not normalized:
        return False
    permissive_patterns = {".*", "^.*$", "^(.*)$", "^https?://.*$", "^https://.*$"}
    return normalized in permissive_patterns


class Settings(BaseSettings):
    APP_ENV: str = "development"
    HOBHOB_ENV: str = ""
    LOG_LEVEL: str = "info"

    # CORS
    CORS_ALLOW_ORIGINS: str = ""
    CORS_ALLOW_ORIGIN_REGEX: str = ""

    # Stats
    DEFAULT_TIMEZONE: str = "UTC"
    HEATMAP_MAX_DAYS: int = 366
    STORE_SLOW_READ_MS: int = 300

    # Daily push cron
    CRON_SECRET: str = ""
    DAILY_PUSH_HOUR: int = 6
    APP_ORIGIN: str = ""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def env_mode(self) -> str:
        if self.HOBHOB_ENV.strip():
            return _normalize_env(self.HOBHOB_ENV)
        return _normalize_env(self.APP_ENV)

    def is_production(self) -> bool:
        return self.env_mode() == "production"

    def get_cors_allow_origins(self) -> list[str]:
        configured = _split_csv(self.CORS_ALLOW_ORIGINS)
        if configured:
            if self.is_production() and any(_is_permissive_origin(origin) for origin in configured):
                raise ValueError("Permissive CORS origin is not allowed in production")
            return configured

        if self.is_production():
            return []

        return [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ]

    def get_cors_allow_origin_regex(self) -> Optional[str]:
        configured = self.CORS_ALLOW_ORIGIN_REGEX.strip()
        if configured:
            if self.is_production() and _is_permissive_origin_regex(configured):
                raise ValueError("Permissive CORS origin regex is not allowed in production")
            return configured

        if self.is_production():
            return None

        return r"^https://.*\.vercel\.app$"

    def get_daily_push_hour(self) -> int:
        return min(23, max(0, int(self.DAILY_PUSH_HOUR)))

    def get_heatmap_max_days(self) -> int:
        return max(1, int(self.HEATMAP_MAX_DAYS))


settings = Settings()
