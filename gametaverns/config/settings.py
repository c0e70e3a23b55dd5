from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for writes that bypass RLS (imports, notifications)

    # BoardGameGeek
    bgg_base_url: str = "https://boardgamegeek.com/xmlapi2"
    bgg_session_cookie: Optional[str] = None  # Browser cookie, used when BGG blocks server-to-server traffic
    bgg_page_delay_seconds: float = 1.0
    bgg_accepted_retry_seconds: float = 3.0  # BGG answers 202 while it prepares a response
    bgg_timeout_seconds: float = 30.0

    # Discord
    discord_bot_token: Optional[str] = None
    discord_api_base: str = "https://discord.com/api/v10"

    # Firebase Cloud Messaging (service account JSON as a string)
    firebase_service_account_json: Optional[str] = None

    # Cloudflare Turnstile
    turnstile_secret_key: Optional[str] = None

    # Game inquiries
    inquiry_rate_limit: int = 5
    inquiry_rate_window_minutes: int = 60
    ip_hash_salt: str = ""

    # App
    app_name: str = "gametaverns-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173,http://localhost:8080,http://127.0.0.1:5173"
    rate_limit: str = "120/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
