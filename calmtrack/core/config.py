from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_database_url() -> str:
    return f"sqlite:///{Path.home() / '.config' / 'calmtrack' / 'calmtrack.db'}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = _default_database_url()
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # The API only listens on loopback; the dashboard runs on the same machine.
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # How many readings the trend chart shows by default.
    RECENT_READINGS_LIMIT: int = 10

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "http://localhost:3000,http://127.0.0.1:3000"
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
