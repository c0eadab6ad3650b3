import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    TG_BOT_TOKEN: str

    # Привилегированные пользователи: ADMIN_IDS="1,2", ADMIN_ID=3, JSON-файл
    ADMIN_IDS: str = ""
    ADMIN_ID: Optional[int] = None
    BOT_CONFIG_FILE: Optional[Path] = None

    BACKEND_URL: str = "http://127.0.0.1:8000"
    REDIS_URL: str = "redis://localhost:6379/0"

    TZ_OFFSET_MINUTES: int = 0
    # Простой FSM-сессии до сброса (секунды)
    FLOW_SESSION_TTL: int = 1800

    SUPPORT_CONTACT: str = "@support"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        logger.critical(f"Bot configuration error:\n{e}")
        raise SystemExit(1)


settings = load_settings()

BOT_TOKEN = settings.TG_BOT_TOKEN
BACKEND_URL = settings.BACKEND_URL
REDIS_URL = settings.REDIS_URL
TZ_OFFSET_MINUTES = settings.TZ_OFFSET_MINUTES
FLOW_SESSION_TTL = settings.FLOW_SESSION_TTL
SUPPORT_CONTACT = settings.SUPPORT_CONTACT
