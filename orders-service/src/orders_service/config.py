from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="../.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ORDERS_DB_USER: str      = ""
    ORDERS_DB_PASSWORD: str  = ""
    ORDERS_DB_NAME: str      = ""
    ORDERS_DB_HOST: str      = "localhost"
    ORDERS_DB_PORT: int      = 5432
    # full async URL, wins over the ORDERS_DB_* parts when set
    ORDERS_DATABASE_URL: str | None = None
    SQL_ECHO: bool           = False

    USER_SERVICE_URL: str    = "http://user-service:8080/api"
    PRODUCT_SERVICE_URL: str = "http://product-service:8081/api"
    HTTP_TIMEOUT_SECONDS: float = 5.0

    LOG_LEVEL: str           = "INFO"

    @property
    def database_url(self) -> str:
        if self.ORDERS_DATABASE_URL:
            return self.ORDERS_DATABASE_URL
        return (
            f"postgresql+asyncpg://"
            f"{self.ORDERS_DB_USER}:"
            f"{self.ORDERS_DB_PASSWORD}"
            f"@{self.ORDERS_DB_HOST}:"
            f"{self.ORDERS_DB_PORT}/"
            f"{self.ORDERS_DB_NAME}"
        )

settings = Settings()
