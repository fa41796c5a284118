from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    RESET_DB: bool = False
    SEED_DEMO_CATALOG: bool = True
    MAX_LINE_QUANTITY: int = 99
    CART_TTL_SECONDS: int = 7 * 24 * 3600
    CART_PURGE_INTERVAL_SECONDS: int = 3600
    CART_LOCK_TIMEOUT_SECONDS: float = 10.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
