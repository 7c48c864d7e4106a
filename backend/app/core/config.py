from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = ""  # empty: DEBUG in development, INFO elsewhere
    CORS_ORIGINS: str = "http://localhost:5173"

    # Order store
    ORDER_STORE: str = "memory"  # memory | sql
    DATABASE_URL: str = "sqlite:///./scrap_ops.db"
    SEED_DEMO_DATA: bool = True
    DEMO_SEED: int = 7

    # Presentation
    CURRENCY_SYMBOL: str = "₹"
    WEIGHT_UNIT: str = "kg"

    # Rate limits
    KPI_RATE_LIMIT: str = "120/minute"

    # Monitoring
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
