# backend/app/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # /booking


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/booking.db"
    redis_url: str = "redis://localhost:6379/0"

    # Напоминания: за сколько часов до записи
    reminder_hours: int = 2
    # Смещение локального времени салона относительно UTC (минуты)
    tz_offset_minutes: int = 0
    # Период проверки напоминаний (секунды)
    reminder_check_interval: int = 600

    # Тестовые слоты при пустой базе (только локально)
    seed_demo_slots: bool = False

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Преобразуем относительный путь в абсолютный
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
