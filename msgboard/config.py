from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


# Board limits. MAX_MESSAGES is derived so the storage cap and the
# pagination ceiling cannot drift apart.
PAGE_SIZE = 50
MAX_PAGES = 20
MAX_MESSAGES = PAGE_SIZE * MAX_PAGES


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Follows 12-factor app configuration principles.
    """
    
    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )
    
    # Database Configuration
    DATABASE_URL: str = "sqlite:///./data/messages.db"
    
    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    
    # Server binding
    HOST: str = "0.0.0.0"
    PORT: int = 13478
    
    # Largest accepted form body in bytes
    MAX_BODY_BYTES: int = 1_000_000


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()


# Global settings instance
settings = get_settings()
