"""Configuration settings using Pydantic"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Keys
    # Optional: a missing key does not crash the process, every generation
    # call is rejected by the provider instead (see ItineraryAgent)
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")

    # Supabase Configuration
    supabase_url: str = Field(default="", alias="SUPABASE_URL")
    supabase_key: str = Field(default="", alias="SUPABASE_KEY")

    # "supabase" in production, "memory" for local development and tests
    itinerary_store: str = Field(default="supabase", alias="ITINERARY_STORE")

    # JWT Configuration
    jwt_secret_key: str = Field(default="change-me", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Application Settings
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")

    # Model Settings
    model_name: str = Field(default="gemini-2.5-flash", alias="MODEL_NAME")
    model_temperature: float = 0.2
    generation_timeout_seconds: int = Field(default=60, alias="GENERATION_TIMEOUT_SECONDS")

    # Trip Validation
    max_trip_days: int = 30
    max_preferences_length: int = Field(default=500, alias="MAX_PREFERENCES_LENGTH")

    # Ubatuba, SP
    destination_latitude: float = -23.4336
    destination_longitude: float = -45.0838
    destination_timezone: str = "America/Sao_Paulo"

    # CORS Settings
    allowed_origins: str = Field(
        default="http://localhost:5173",
        alias="ALLOWED_ORIGINS",
        description="Comma-separated list of allowed origins for CORS"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True


# Global settings instance
settings = Settings()
