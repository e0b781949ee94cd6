from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "classmint"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    SECRET_KEY: str = "dev-secret-key-change-me"
    DATABASE_URL: str = "sqlite:///classmint.db"

    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "classmint_token"
    SESSION_COOKIE_SAMESITE: str = "Lax"
    SESSION_COOKIE_SECURE: bool = False

    MEDIA_ROOT: str = "media"
    ALLOWED_IMAGE_EXTS: set[str] = {"png", "jpg", "jpeg", "webp"}
    MAX_IMAGE_BYTES: int = 4 * 1024 * 1024  # 4 MB
    AWARD_IMAGE_SIZE: int = 512

    # Serve the static demo roster when a teacher has no enrolled students yet
    ROSTER_DEMO_FALLBACK: bool = True
    AWARD_NETWORK: str = "testnet"


settings = Settings()
