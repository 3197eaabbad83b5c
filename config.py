from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Application
    app_name: str = "Task Manager"
    version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./tasks.db"

    # Sessions
    secret_key: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = [
        "http://localhost",
        "http://localhost:8000",
    ]

    # Pagination
    per_page_options: list[int] = [10, 20, 50, 100]
    default_per_page_index: int = 1

    # Admin account created on startup if missing
    admin_username: str = "admin"
    admin_password: Optional[str] = None

    # Views
    templates_dir: str = "templates"
    static_dir: str = "static"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @model_validator(mode="after")
    def check_default_per_page_index(self):
        if not 0 <= self.default_per_page_index < len(self.per_page_options):
            raise ValueError(
                f"default_per_page_index {self.default_per_page_index} is outside per_page_options"
            )
        return self

    @property
    def default_limit(self) -> int:
        """Records per page when no preference is stored"""
        return self.per_page_options[self.default_per_page_index]


def check_required_settings(settings: Settings):
    """Refuse to start without the secrets the app cannot safely default"""
    if not settings.secret_key:
        raise RuntimeError("SECRET_KEY not found in environment variables")
    if not settings.admin_password:
        raise RuntimeError("ADMIN_PASSWORD not found in environment variables")


@lru_cache()
def get_settings() -> Settings:
    """Cache settings to avoid reading .env multiple times"""
    return Settings()
