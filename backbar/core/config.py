"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Backbar"
    DEBUG: bool = True
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Item store: "mock" (in-memory), "http" (remote document store), "sql"
    STORE_BACKEND: str = "mock"
    # Owner id to fill with demo items on startup (empty: no seeding)
    DEMO_SEED_OWNER: str = ""

    # Remote document store
    DOCUMENT_STORE_URL: str = "http://localhost:8080/v1"
    DOCUMENT_STORE_API_KEY: str = ""
    DOCUMENT_STORE_TIMEOUT: float = 30.0

    # Database (STORE_BACKEND=sql)
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "backbar"
    POSTGRES_PASSWORD: str = "backbar_dev"
    POSTGRES_DB: str = "backbar"
    DATABASE_URL: str = ""

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # JWT
    JWT_SECRET_KEY: str = "change-me-in-production-use-a-32-byte-key"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    JWT_ALGORITHM: str = "HS256"

    # Query engine
    SEARCH_THRESHOLD: float = 0.49
    REFRESH_MIN_VISIBLE_SECONDS: float = 0.7

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
