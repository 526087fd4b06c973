"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="agora", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Public URL pieces (used for OAuth callbacks and links in emails)
    protocol: Literal["http", "https"] = Field(
        default="http", description="Public protocol"
    )
    domain: str = Field(default="localhost:8000", description="Public host[:port]")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Authentication
    auth_secret_key: str = Field(
        default="dev-jwt-secret-key-change-in-production-32chars!",
        description="JWT signing key (min 32 chars)",
    )
    auth_algorithm: str = Field(default="HS256", description="JWT algorithm")
    auth_access_token_expire_minutes: int = Field(
        default=60 * 24, description="Access token expiration (minutes)"
    )
    auth_state_cookie_name: str = Field(
        default="agora_oauth_state", description="Cookie holding the OAuth state"
    )
    auth_cookie_secure: bool = Field(
        default=False, description="Secure cookie (HTTPS only)"
    )

    # OAuth providers
    google_client_id: str | None = Field(default=None, description="Google client ID")
    google_client_secret: str | None = Field(
        default=None, description="Google client secret"
    )
    facebook_app_id: str | None = Field(default=None, description="Facebook app ID")
    facebook_app_secret: str | None = Field(
        default=None, description="Facebook app secret"
    )
    linkedin_api_key: str | None = Field(
        default=None, description="LinkedIn client ID"
    )
    linkedin_api_secret: str | None = Field(
        default=None, description="LinkedIn client secret"
    )
    admin_google_client_id: str | None = Field(
        default=None, description="Google client ID for the admin login"
    )
    admin_google_client_secret: str | None = Field(
        default=None, description="Google client secret for the admin login"
    )
    admin_email_domain: str = Field(
        default="agora.community",
        description="Only addresses on this domain may use the admin login",
    )
    oauth_timeout: float = Field(
        default=10.0, description="Timeout for OAuth provider requests"
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )
    redis_retry_on_timeout: bool = Field(default=True, description="Retry on timeout")
    redis_health_check_interval: int = Field(
        default=30, description="Health check interval"
    )

    # Job queue
    job_queue_name: str = Field(default="default", description="Job queue name")
    job_poll_timeout: int = Field(
        default=5, description="Seconds a worker blocks waiting for a job"
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(default="agora", description="Cassandra keyspace")
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="CORS origins")
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    # Email (transactional template API)
    email_enabled: bool = Field(
        default=False, description="Enable sending templated emails"
    )
    email_api_key: str | None = Field(
        default=None, description="Template API key (KEEP SECRET!)"
    )
    email_api_base_url: str = Field(
        default="https://api.sendwithus.com/api/v1",
        description="Base URL of the template email API",
    )
    email_api_timeout: float = Field(default=10.0, description="Template API timeout")
    email_sender_address: str = Field(
        default="notifications@agora.community", description="Default sender address"
    )
    email_sender_name: str = Field(default="Agora", description="Sender display name")

    # Reply-by-email
    reply_domain: str = Field(
        default="reply.agora.community",
        description="Domain receiving reply-to-comment emails",
    )
    reply_address_salt: str = Field(
        default="agora-reply-salt", description="Salt prefixed to reply payloads"
    )
    reply_address_secret: str = Field(
        default="dev-reply-secret-change-in-production",
        description="Secret used to derive the reply-address encryption key",
    )

    # Analytics
    analytics_enabled: bool = Field(
        default=False, description="Send events to the analytics pipeline"
    )
    analytics_write_key: str | None = Field(
        default=None, description="Analytics write key"
    )
    analytics_api_url: str = Field(
        default="https://api.segment.io/v1/track",
        description="Analytics track endpoint",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def base_url(self) -> str:
        """Public base URL, e.g. ``https://agora.community``."""
        return f"{self.protocol}://{self.domain}"

    @property
    def email_configured(self) -> bool:
        """Check if the template email API is configured."""
        return bool(self.email_enabled and self.email_api_key)

    @property
    def analytics_configured(self) -> bool:
        """Check if analytics tracking is configured."""
        return bool(self.analytics_enabled and self.analytics_write_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
