from pydantic_settings import BaseSettings, SettingsConfigDict


SECURE_SESSION_COOKIE = "__Secure-next-auth.session-token"
PLAIN_SESSION_COOKIE = "next-auth.session-token"
REMEMBER_ME_COOKIE = "remember-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    DATABASE_URL: str = "sqlite:///./jobboard.db"

    # Runtime environment: development | production | test
    ENVIRONMENT: str = "development"

    # Token provider (signed JWT cookie)
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    AUTH_TOKEN_COOKIE: str = "jobboard.auth-token"
    AUTH_TOKEN_EXPIRE_DAYS: int = 7

    # Database sessions
    SESSION_EXPIRE_DAYS: int = 7
    REMEMBER_ME_EXPIRE_DAYS: int = 30
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Google Gemini API
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Uploads
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_SIZE_MB: int = 10

    # Application
    APP_NAME: str = "Inclusive Jobs"
    APP_URL: str = "http://localhost:3000"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: str = (
        "http://localhost:3000,"
        "http://localhost:3001,"
        "http://127.0.0.1:3000"
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


def session_cookie_name(environment: str) -> str:
    """Name of the database-session cookie for the given environment."""
    if environment.lower() == "production":
        return SECURE_SESSION_COOKIE
    return PLAIN_SESSION_COOKIE


settings = Settings()

# Resolved once at import
SESSION_COOKIE_NAME = session_cookie_name(settings.ENVIRONMENT)
