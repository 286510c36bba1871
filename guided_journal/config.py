"""Application settings loaded from environment variables and .env."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the Guided Journal API."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = Field(default="sqlite:///./guided_journal.db")
    DATABASE_ECHO: bool = Field(default=False)

    OPENAI_API_KEY: str = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-4")
    OPENAI_MAX_TOKENS: int = Field(default=200)
    OPENAI_TEMPERATURE: float = Field(default=0.7)
    OPENAI_TIMEOUT: float = Field(default=30.0)
    OPENAI_MAX_RETRIES: int = Field(default=0)

    JWT_SECRET: str = Field(default="development-only-secret-change-me-please")
    JWT_ALGORITHM: str = Field(default="HS256")

    ENFORCE_CONVERSATION_OWNERSHIP: bool = Field(default=True)
    RATE_LIMIT_PER_MINUTE: int = Field(default=20)
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])
    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()  # type: ignore
