from pydantic_settings import BaseSettings
from typing import List
import os


class Settings(BaseSettings):
    env: str = "dev"
    secret_key: str = "change_me_super_secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_minutes: int = 60 * 24 * 30
    bcrypt_rounds: int = 12
    database_url: str = "postgresql+psycopg2://kiosk:kiosk@db:5432/kioskpos"
    kiosk_header: str = "X-Kiosk-ID"
    backend_cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Schedules of price lists are evaluated in the kiosk's local time
    default_timezone: str = "America/Argentina/Buenos_Aires"

    # Cadence advertised to clients polling the live cash balance
    balance_refresh_seconds: int = 30

    port: int = int(os.getenv("PORT", "8000"))

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
