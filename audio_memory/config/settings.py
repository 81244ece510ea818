from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "audio_memory"
    dsn: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL; overrides the individual connection fields.",
    )
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.dsn:
            return self.dsn
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration"""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_name: str = "audio-files"
    endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL used for public object links (CDN or S3-compatible host).",
    )

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class MailConfig(BaseSettings):
    """SMTP configuration for magic-link delivery."""

    host: str = ""
    port: int = 587
    username: Optional[str] = None
    password: SecretStr | None = None
    sender_name: str = "Audio Memory"
    sender_address: str = "no-reply@localhost"
    reply_to: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False

    def is_configured(self) -> bool:
        return bool(self.host and self.sender_address)

    model_config = SettingsConfigDict(
        env_prefix="MAIL_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class SecurityConfig(BaseSettings):
    """JWT, magic-link and session cookie configuration."""

    jwt_secret_key: SecretStr = Field(
        default=SecretStr("change-me"),
        validation_alias="JWT_SECRET",
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    sign_in_link_expires_minutes: int = Field(
        default=15,
        validation_alias="MAGIC_LINK_EXPIRATION_MINUTES",
        ge=1,
    )
    session_expires_minutes: int = Field(
        default=60 * 24 * 7,
        validation_alias="SESSION_EXPIRATION_MINUTES",
        ge=1,
    )
    session_cookie_name: str = Field(
        default="audio_memory_session",
        validation_alias="SESSION_COOKIE_NAME",
    )
    session_cookie_secure: bool = Field(
        default=False,
        validation_alias="SESSION_COOKIE_SECURE",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class QrConfig(BaseSettings):
    """QR image rendering options."""

    size: int = Field(default=300, ge=64, le=2048)
    margin: int = Field(default=2, ge=0, le=16)

    model_config = SettingsConfigDict(
        env_prefix="QR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Audio Memory"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    upload_log_file: str = "logs/uploads.log"

    # Public origin used in magic links, CSV exports and QR images.
    site_url: str = "http://localhost:8000"

    # Comma separated list of administrator e-mails.
    admin_emails: str = ""

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Mail
    mail: MailConfig = Field(default_factory=MailConfig)

    # Security
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    # QR images
    qr: QrConfig = Field(default_factory=QrConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def origin(self) -> str:
        return self.site_url.rstrip("/")

    @property
    def admin_email_set(self) -> frozenset[str]:
        return frozenset(
            email.strip().lower()
            for email in self.admin_emails.split(",")
            if email.strip()
        )


# Global settings instance
settings = Settings()
