from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from .services.orders import ValidationFailurePolicy

class Settings(BaseSettings):
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    env: str = "development"

    database_url: str = "sqlite+aiosqlite:///./transactions.db"
    database_timeout: float = 5.0

    orders_service_url: str = "http://localhost:8080"
    orders_service_timeout: float = 5.0
    order_validation_failure: Optional[ValidationFailurePolicy] = None

    seed_demo_data: Optional[bool] = None
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def validation_failure_policy(self) -> ValidationFailurePolicy:
        if self.order_validation_failure is not None:
            return self.order_validation_failure
        if self.is_production:
            return ValidationFailurePolicy.FAIL
        return ValidationFailurePolicy.BYPASS_WITH_WARNING

    @property
    def should_seed(self) -> bool:
        if self.seed_demo_data is not None:
            return self.seed_demo_data
        return not self.is_production


def logging_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "default"}},
        "loggers": {
            "payment_transactions": {"handlers": ["console"], "level": level.upper()},
        },
    }

settings = Settings()
