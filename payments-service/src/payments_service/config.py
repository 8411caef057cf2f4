from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="../.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PAYMENTS_DB_USER: str      = ""
    PAYMENTS_DB_PASSWORD: str  = ""
    PAYMENTS_DB_NAME: str      = ""
    PAYMENTS_DB_HOST: str      = "localhost"
    PAYMENTS_DB_PORT: int      = 5432
    # full async URL, wins over the PAYMENTS_DB_* parts when set
    PAYMENTS_DATABASE_URL: str | None = None
    SQL_ECHO: bool             = False

    ORDER_SERVICE_URL: str     = "http://order-service:8082/api"
    HTTP_TIMEOUT_SECONDS: float = 5.0

    RECONCILIATION_POLL_INTERVAL: float       = 5.0
    RECONCILIATION_MAX_ATTEMPTS: int          = 8
    RECONCILIATION_BACKOFF_SECONDS: float     = 1.0
    RECONCILIATION_BACKOFF_MAX_SECONDS: float = 300.0

    LOG_LEVEL: str             = "INFO"

    @property
    def database_url(self) -> str:
        if self.PAYMENTS_DATABASE_URL:
            return self.PAYMENTS_DATABASE_URL
        return (
            f"postgresql+asyncpg://"
            f"{self.PAYMENTS_DB_USER}:"
            f"{self.PAYMENTS_DB_PASSWORD}"
            f"@{self.PAYMENTS_DB_HOST}:"
            f"{self.PAYMENTS_DB_PORT}/"
            f"{self.PAYMENTS_DB_NAME}"
        )

settings = Settings()
