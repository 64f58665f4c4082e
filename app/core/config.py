"""Application configuration."""
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (agent line falls back to echo replies without a key)
    openai_api_key: Optional[str] = None

    # Twilio
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    validate_twilio_signature: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./voice_intake.db"

    # Business
    business_name: str = "Reduc AI"
    base_url: Optional[str] = None  # public URL used for Twilio callbacks
    dashboard_password: str = "change-me"

    # IVR
    ivr_voice: str = "Polly.Joanna"
    ivr_language: str = "en-US"
    ivr_session_ttl_seconds: int = 900
    ivr_max_sessions: int = 10000  # 0 disables the cap
    ivr_max_attempts: int = 3  # 0 disables the retry bound
    ivr_escalation: Literal["frontdesk", "hangup"] = "frontdesk"
    frontdesk_number: Optional[str] = None

    # Agent line
    agent_model: str = "gpt-4o-mini"
    agent_temperature: float = 0.6
    agent_max_tokens: int = 180
    agent_profiles_file: Optional[str] = None

    # Rate limiting
    rate_limit_per_minute: int = 40

    # Server
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
