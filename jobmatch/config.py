"""
Configuration management for JobMatch.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # LLM (resume parsing)
    deepseek_api_key: str = ""
    deepseek_model: str = "deepseek-chat"

    # Search APIs
    serper_api_key: str = ""
    brave_api_key: str = ""
    tavily_api_key: str = ""
    search_providers: str = "serper,brave,tavily"  # failover order

    # Payments
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    price_cents: int = 500
    app_url: str = "http://localhost:3000"

    # Email
    resend_api_key: str = ""
    email_from: str = "JobMatch <jobs@jobmatch.example>"
    email_max_attempts: int = 3
    email_backoff_seconds: float = 1.0

    # Session store
    redis_url: str = ""
    session_ttl_seconds: int = 2 * 60 * 60
    memory_store_maxsize: int = 1024

    # Search settings
    search_max_calls: int = 7
    search_max_results: int = 25
    search_results_per_query: int = 10
    search_concurrency: int = 1
    search_timeout: float = 30.0

    # Results endpoint
    results_preview_size: int = 5
    results_timeout_seconds: float = 45.0
    stuck_after_seconds: int = 120

    # API
    max_upload_bytes: int = 5 * 1024 * 1024
    cors_origins: str = "http://localhost:3000"
    upload_rate_limit: str = "10/minute"
    debug_endpoints: bool = False

    # Observability
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars

    @property
    def provider_order(self) -> list[str]:
        return [p.strip().lower() for p in self.search_providers.split(",") if p.strip()]


settings = Settings()
