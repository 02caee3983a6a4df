"""Configuration settings for PromptPilot."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI Configuration (optional - AI features report themselves disabled without it)
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_timeout_seconds: float = 25.0
    openai_max_retries: int = 3
    openai_retry_backoff_seconds: float = 1.0

    # Model used by each prompt function
    analysis_model: str = "gpt-4.1"
    enhance_model: str = "gpt-4o"
    template_model: str = "o3-mini"
    json_model: str = "gpt-4o-mini"
    tags_model: str = "gpt-4.1-mini"
    model_info_model: str = "gpt-4o-mini"
    connection_test_model: str = "gpt-3.5-turbo"

    # Analysis limits
    max_image_base64_chars: int = 650_000
    max_website_chars: int = 8_000
    website_fetch_timeout: float = 15.0

    # Server Configuration
    server_host: str = "0.0.0.0"
    server_port: int = 8001

    # Database: an explicit URL wins over the MySQL parts
    database_url: Optional[str] = None
    mysql_host: str = "localhost"
    mysql_port: int = 3306
    mysql_database: str = "promptpilot"
    mysql_user: str = "root"
    mysql_password: str = ""

    # Redis Configuration (response cache)
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    response_cache_ttl_seconds: int = 900

    # Backing platform health polling
    connection_check_url: str = "http://localhost:8001/health"
    connection_check_interval: float = 30.0
    connection_check_timeout: float = 5.0
    connection_monitor_enabled: bool = False

    # Drafts
    draft_ttl_days: int = 5

    # AI model catalogue maintenance
    model_update_interval_hours: int = 24
    model_enhance_delay_seconds: float = 0.5

    # YouTube Data API (video metadata as prompt context)
    youtube_api_key: Optional[str] = None
    youtube_api_url: str = "https://www.googleapis.com/youtube/v3"

    # API Configuration
    api_prefix: str = "/api"
    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
