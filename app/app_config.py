from pydantic import BaseModel

from app.shared.config import config


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get("DEBUG", "false").strip().lower() == "true"  # type: ignore

    # RTC credential configuration
    RTC_APP_ID: str | None = (config.get("RTC_APP_ID") or "").strip() or None
    # Signing secret: never log this value.
    RTC_APP_CERTIFICATE: str | None = (config.get("RTC_APP_CERTIFICATE") or "").strip() or None
    RTC_TOKEN_TTL_SECONDS: int = int((config.get("RTC_TOKEN_TTL_SECONDS") or "").strip() or 3600)

    # Live session registry
    LIVE_COMMENT_CAPACITY: int = int((config.get("LIVE_COMMENT_CAPACITY") or "").strip() or 50)
    # 0 disables the idle reaper; sessions then live until explicitly ended.
    LIVE_SESSION_IDLE_TIMEOUT_SECONDS: int = int(
        (config.get("LIVE_SESSION_IDLE_TIMEOUT_SECONDS") or "").strip() or 0
    )
    LIVE_SESSION_REAP_INTERVAL_SECONDS: int = int(
        (config.get("LIVE_SESSION_REAP_INTERVAL_SECONDS") or "").strip() or 60
    )

    # Observability
    LOGFIRE_ENABLE: bool = config.get("LOGFIRE_ENABLE", "false").strip().lower() == "true"  # type: ignore
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None

    # Server
    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()  # type: ignore
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 3000)
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)
    API_CORS_ORIGINS: list[str] = config.get_cors_origins()


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
