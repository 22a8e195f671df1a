from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./delivery.db"
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS origins for the manager/driver web front-end
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Business dates (order day, cash register day, cost day)
    BUSINESS_TIMEZONE: str = "America/Sao_Paulo"

    # PIX merchant data used in the static BR Code
    PIX_KEY: str = "28329618000119"
    PIX_MERCHANT_NAME: str = "SISTEMA DE ENTREGAS"
    PIX_MERCHANT_CITY: str = "SAO PAULO"

    # Ledger strictness switches
    ALLOW_NEGATIVE_STOCK: bool = True
    ENFORCE_WITHDRAWAL_LIMIT: bool = False
    REQUIRE_FULL_PAYMENT_ON_COMPLETE: bool = False


settings = Settings()
