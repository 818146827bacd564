from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "TaPago API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Expense splitting between friends: debts, payments and running totals"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Document store
    STORE_BACKEND: Literal["mongo", "memory"] = "mongo"
    MONGODB_URI: str = "mongodb://localhost:27017/?replicaSet=rs0"
    MONGODB_DB: str = "tapago"

    # Ledger transactions
    TRANSACTION_MAX_ATTEMPTS: int = 5
    TRANSACTION_RETRY_BASE_DELAY: float = 0.05
    REQUIRE_FRIENDSHIP_FOR_DEBT: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:8081", "http://localhost:19006"]

    # JWT
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
