"""
OmniCall - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and environment-specific values are loaded from environment variables.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Hierarchy (highest to lowest priority):
    1. Environment variables
    2. .env file
    3. Default values
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # --- Application ---
    app_env: str = "development"
    app_debug: bool = True
    app_log_level: str = "INFO"
    log_json: bool = False  # JSON log lines instead of human-readable ones
    
    # --- Server ---
    backend_host: str = "0.0.0.0"
    backend_port: int = 3000
    
    # --- Telephony ---
    telephony_provider: str = "twilio"
    twilio_phone_number: str = ""           # callerId for outbound calls
    twilio_auth_token: str = ""             # enables webhook signature checks when set
    default_agent_id: str = "agent001"      # client identity inbound calls are routed to
    incoming_greeting: str = "Welcome to OmniCall. Please wait while we connect you to an agent."
    agent_unavailable_message: str = "Sorry, the agent is not available. Please try again later."
    
    # --- Dialing ---
    # National numbers with a leading 0 are dialed as +<code>
    default_country_code: str = "27"
    
    # --- Directory ---
    directory_seed_path: str = ""           # optional JSON file loaded at startup
    directory_api_url: str = "http://localhost:3000"
    directory_timeout_seconds: float = 5.0
    
    # --- Softphone ---
    duration_tick_seconds: float = 1.0
    ended_grace_seconds: float = 2.0
    cancel_grace_seconds: float = 1.0
    call_connect_timeout_seconds: Optional[float] = 60.0  # None disables the wait
    
    # --- Security ---
    allowed_origins: str = "http://localhost:8000,http://localhost:3001,http://localhost:5173"
    
    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated origins into list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
    
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"
    
    @property
    def webhook_validation_enabled(self) -> bool:
        return bool(self.twilio_auth_token)


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.
    
    Use dependency injection in routes:
        settings: Settings = Depends(get_settings)
    """
    return Settings()


# Convenience export
settings = get_settings()
