"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30

    # Serverless routes used by the voting client's primary path
    functions_url: str = "http://localhost:8000/functions/v1"
    functions_timeout_seconds: int = 10

    # Email delivery (Brevo transactional API)
    brevo_api_key: str = ""
    brevo_api_url: str = "https://api.brevo.com/v3/smtp/email"
    from_email: str = "noreply@onlinesprava.cz"
    from_name: str = "OnlineSprava"
    mailer_timeout_seconds: int = 20
    frontend_url: str = "http://localhost:5173"

    # Voting links
    voting_link_ttl_days: int = 30

    # App
    app_name: str = "SVJ Voting API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:5173"
    enable_snapshot_fallback: bool = True

    # Performance tuning
    auth_token_cache_ttl_seconds: int = 15
    auth_token_cache_max_entries: int = 1024
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def voting_link_url(self, token: str) -> str:
        """Return the public frontend URL for one voting token."""
        return f"{self.frontend_url.rstrip('/')}/vote/{token}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
