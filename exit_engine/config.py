"""
Environment-driven engine configuration.
Values come from the process environment, with a local .env file loaded first.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"


class EngineSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    ml_service_url: Optional[str] = None
    ml_api_key: str = ""
    ml_service_timeout: float = 30.0
    rate_limit_requests: int = 5
    rate_limit_window_seconds: float = 3600.0
    improvement_target_score: float = 90.0
    report_webhook_url: Optional[str] = None
    api_key: str = "your-secure-api-key-here"
    log_level: str = "INFO"
    trust_forwarded_for: bool = False

    @property
    def remote_enabled(self) -> bool:
        return bool(self.ml_service_url)


def _env_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={raw!r}, using default {default}")
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> EngineSettings:
    """Read settings from the environment (after loading .env if present)"""
    load_dotenv()

    return EngineSettings(
        ml_service_url=os.getenv("ML_SERVICE_URL") or None,
        ml_api_key=os.getenv("ML_API_KEY", ""),
        ml_service_timeout=_env_number("ML_SERVICE_TIMEOUT", 30.0),
        rate_limit_requests=_env_number("RATE_LIMIT_REQUESTS", 5, int),
        rate_limit_window_seconds=_env_number("RATE_LIMIT_WINDOW_SECONDS", 3600.0),
        improvement_target_score=_env_number("IMPROVEMENT_TARGET_SCORE", 90.0),
        report_webhook_url=os.getenv("REPORT_WEBHOOK_URL") or None,
        api_key=os.getenv("API_KEY", "your-secure-api-key-here"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        trust_forwarded_for=_env_flag("TRUST_FORWARDED_FOR"),
    )
