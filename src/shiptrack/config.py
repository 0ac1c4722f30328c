"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-secret-change-in-production-0000000000"


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SHIPTRACK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Shipment Tracking API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level for the service.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Access gate
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Shared secret used to verify bearer tokens.",
    )
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    jwt_issuer: Optional[str] = Field(
        default=None,
        description="Expected `iss` claim; tokens without it are rejected when set.",
    )
    jwt_expiry_seconds: int = Field(default=3600, ge=1)

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    shipments_table: str = "shipments"

    # Email (Resend HTTP API)
    email_api_key: Optional[str] = None
    email_base_url: str = "https://api.resend.com"
    email_from: str = "noreply@shiptrack.local"

    # SMS (Twilio REST API)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_from_number: Optional[str] = None
    twilio_base_url: str = "https://api.twilio.com"

    # Push (Firebase Cloud Messaging HTTP v1)
    fcm_project_id: Optional[str] = None
    fcm_credentials_file: Optional[str] = Field(
        default=None,
        description="Path to the Google service-account JSON key used to mint FCM access tokens.",
    )
    fcm_base_url: str = "https://fcm.googleapis.com"

    notification_timeout_seconds: float = Field(default=10.0, gt=0.0)
    max_concurrent_notifications: int = Field(
        default=0,
        ge=0,
        description="Upper bound on in-flight notification stages (0 = unbounded).",
    )

    websocket_enabled: bool = True
    realtime_require_auth: bool = Field(
        default=True,
        description="Require a driver token on the websocket before accepting updateLocation.",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
