from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./deals.db"

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    # Read as string first to avoid Pydantic trying to parse comma-separated list as JSON
    cors_origins_raw: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")

    # Signature links
    signature_token_secret: str = "dev-signature-secret-change-me-in-production"
    signature_token_algorithm: str = "HS256"
    signature_token_ttl_days: int = 30
    frontend_url: str = "http://localhost:3000"

    # Email delivery
    email_provider: str = "log"  # log | sendgrid | smtp
    email_sender: str = "sales@example.com"
    email_sender_name: str = "CRM Quotes"
    sendgrid_api_key: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True

    # PDF output
    pdf_output_dir: str = "uploads/quotes"
    pdf_url_prefix: str = "/uploads/quotes"
    company_name: str = "My Company"

    # Quote numbering
    quote_number_max_attempts: int = 5

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from raw string (comma-separated or JSON)."""
        value = self.cors_origins_raw
        if not value:
            return []

        # Try JSON first
        if value.strip().startswith("["):
            import json
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        # Fallback to comma-separated
        return [i.strip() for i in value.split(",")]

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
