"""
Configuration management for the tea shop service
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Deniyaya Tea Shop"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4
    cors_origins: str = "*"  # comma-separated

    # Database
    database_url: str = "sqlite:///./teashop.db"
    seed_demo_data: bool = True

    # Authentication
    initial_admin_email: str = ""
    initial_admin_password: str = ""
    initial_admin_name: Optional[str] = None
    session_duration_hours: int = 72
    bcrypt_rounds: int = 12

    # Scheduler
    enable_scheduler: bool = True
    session_cleanup_minutes: int = 60

    # Reporting / display
    currency_code: str = "LKR"
    default_report_window: str = "30d"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
