"""Configuration settings for the resume worker."""
from urllib.parse import quote

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # RabbitMQ
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_QUEUE_NAME: str = "resumes.queue"
    RABBITMQ_EXCHANGE: str = "woragis.tasks"
    RABBITMQ_ROUTING_KEY: str = "resumes.generate"
    RABBITMQ_PREFETCH_COUNT: int = 5
    RABBITMQ_DLX_EXCHANGE: str = "woragis.dlx"
    RABBITMQ_DLX_ROUTING_KEY: str = "resumes.dead-letter"
    RABBITMQ_DLQ_NAME: str = "resumes.dlq"
    RABBITMQ_MAX_REDELIVERIES: int = 3
    RABBITMQ_CONNECT_ATTEMPTS: int = 5
    RABBITMQ_RECONNECT_DELAY: float = 5.0

    # Databases
    DATABASE_URL: str  # jobs database (status + stored resumes)
    DATABASE_URL_POSTS: str
    DATABASE_URL_MANAGEMENT: str
    DATABASE_URL_AUTH: str = ""  # optional, identity lookups are best-effort
    DATABASE_POOL_SIZE: int = 20
    DATABASE_POSTS_POOL_SIZE: int = 10
    DATABASE_MANAGEMENT_POOL_SIZE: int = 10
    DATABASE_AUTH_POOL_SIZE: int = 10
    DATABASE_TIMEOUT: float = 10.0

    # Render (resume) service
    RESUME_SERVICE_URL: str = "http://localhost:8080"
    RESUME_SERVICE_API_KEY: str = ""
    RESUME_SERVICE_TIMEOUT: float = 60.0
    RENDER_MAX_WAIT_SECONDS: float = 300.0
    RENDER_POLL_INTERVAL_SECONDS: float = 5.0

    # AI content service
    AI_SERVICE_URL: str = "http://localhost:8000"
    AI_SERVICE_API_KEY: str = ""
    AI_SERVICE_TIMEOUT: float = 60.0
    AI_SERVICE_CONTENT_ENDPOINT: str = "/api/v1/content/generate"

    # LLM Configuration
    LLM_PROVIDER: str = "service"  # service or openai
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-5-mini"

    # Enrichment
    AI_ENRICHMENT_ENABLED: bool = True
    AI_MAX_CONCURRENCY: int = 5
    AI_DEFAULT_LANGUAGE: str = "en"
    AI_FALLBACK_ON_VALIDATION_FAILURE: str = "raw"  # raw, truncate or skip

    # Retry policy
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_INITIAL_DELAY: float = 1.0  # seconds
    RETRY_MAX_DELAY: float = 30.0  # seconds
    RETRY_BACKOFF_MULTIPLIER: float = 2.0

    # Service Configuration
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    STORAGE_PATH: str = "./storage"
    DATA_FETCH_LIMIT: int = 50
    HEALTH_CHECK_INTERVAL: float = 30.0

    @field_validator("DATABASE_URL", "DATABASE_URL_POSTS", "DATABASE_URL_MANAGEMENT", "DATABASE_URL_AUTH")
    @classmethod
    def _check_postgres_url(cls, value: str) -> str:
        if value and not value.startswith(("postgres://", "postgresql://")):
            raise ValueError("must be a valid PostgreSQL connection string")
        return value

    @property
    def rabbitmq_url(self) -> str:
        """AMQP URL with credentials and vhost percent-encoded."""
        return (
            f"amqp://{quote(self.RABBITMQ_USER, safe='')}:{quote(self.RABBITMQ_PASSWORD, safe='')}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}/{quote(self.RABBITMQ_VHOST, safe='')}"
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.ENVIRONMENT == "development"


# Global settings instance
settings = Settings()
