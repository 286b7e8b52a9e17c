from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./research.db"
    FIREBASE_PROJECT_ID: str | None = None
    FIREBASE_CREDENTIALS: str = "config/serviceAccountKey.json"
    LOG_LEVEL: str = "INFO"
    PORT: int = 5000
    CORS_ORIGINS: list[str] = ["*"]
    EXPOSE_ERROR_DETAILS: bool = True  # raw persistence errors go into 500 bodies

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
