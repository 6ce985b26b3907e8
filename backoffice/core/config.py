from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # App
    app_name: str = "Dealer Back-Office"
    debug: bool = False
    
    # Database
    database_url: str = "sqlite:///./backoffice.db"
    database_echo: bool = False
    
    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"
    log_to_file: bool = False
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5
    
    # Approval engine
    # Raise instead of chaining every match when several templates of one
    # topic match the same context at the same level.
    strict_level_matching: bool = False
    
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
