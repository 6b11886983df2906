from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql://localhost:5432/dealerdesk"
    DB_ECHO: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"

    LOG_LEVEL: str = "INFO"

    # IANA zone that defines the "local day" a priority snapshot expires at
    TIMEZONE: str = "UTC"

    PRIORITY_DEFAULT_LIMIT: int = 20
    PRIORITY_MAX_LIMIT: int = 50
    WRITEBACK_ENABLED: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
