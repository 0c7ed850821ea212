"""
Configuration management system using Pydantic Settings.
Supports environment-based configuration for different deployment environments.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from typing import Optional, Dict, Any, List
from enum import Enum


class Environment(str, Enum):
    """Supported deployment environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TripApiSettings(BaseSettings):
    """Trip/city persistence API configuration"""

    base_url: str = Field(default="http://localhost:5038")
    token: Optional[str] = Field(default=None, description="Bearer token sent with every request")
    timeout_seconds: float = Field(default=15.0, gt=0, le=120)

    model_config = {"env_prefix": "TRIP_API_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class GeocodingSettings(BaseSettings):
    """Geocoding provider (Nominatim) configuration"""

    search_url: str = Field(default="https://nominatim.openstreetmap.org/search")
    reverse_url: str = Field(default="https://nominatim.openstreetmap.org/reverse")
    user_agent: str = Field(default="TripPlanner/1.0")
    timeout_seconds: float = Field(default=10.0, gt=0, le=60)
    min_query_length: int = Field(default=3, ge=1, le=20)
    max_results: int = Field(default=8, ge=1, le=50)
    cache_ttl_seconds: int = Field(default=3600, ge=0, le=86400)

    model_config = {"env_prefix": "GEOCODING_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class TransportSettings(BaseSettings):
    """Distance buckets and heuristics for transport-mode suggestions"""

    walk_max_km: float = Field(default=2.0, gt=0)
    local_max_km: float = Field(default=50.0, gt=0)
    regional_max_km: float = Field(default=300.0, gt=0)
    island_ferry_max_km: float = Field(default=300.0, gt=0)
    island_keywords: List[str] = Field(
        default_factory=lambda: [
            "island", "isle", "mykonos", "santorini", "crete", "rhodes", "corfu",
            "ibiza", "mallorca", "tenerife", "cyprus", "malta", "hawaii", "bali",
        ]
    )

    @field_validator('island_keywords', mode='before')
    @classmethod
    def parse_island_keywords(cls, v):
        """Parse island keywords from a comma separated env value"""
        if isinstance(v, str):
            return [k.strip().lower() for k in v.split(",") if k.strip()]
        return [k.lower() for k in v or []]

    @model_validator(mode='after')
    def check_bucket_order(self):
        if not (self.walk_max_km < self.local_max_km < self.regional_max_km):
            raise ValueError("transport distance thresholds must be strictly increasing")
        return self

    model_config = {"env_prefix": "TRANSPORT_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class WizardSettings(BaseSettings):
    """Trip wizard defaults"""

    budget_currency: str = Field(default="EUR", min_length=3, max_length=3)
    trip_type: str = Field(default="multi-city")
    home_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    home_longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    model_config = {"env_prefix": "WIZARD_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class SecuritySettings(BaseSettings):
    """CORS configuration for the HTTP surface"""

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(
        default_factory=lambda: ["GET", "POST"]
    )
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from environment variable or list"""
        if isinstance(v, str):
            origin_list = v.split(",")
            return [origin.strip() for origin in origin_list if origin.strip()]
        return v or ["*"]

    model_config = {"env_prefix": "SECURITY_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class Settings(BaseSettings):
    """Main application settings"""

    # Application Configuration
    app_name: str = Field(default="Trip Route Planner")
    app_version: str = Field(default="1.0.0")
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)
    workers: int = Field(default=1, ge=1, le=16)

    # Logging Configuration
    log_level: LogLevel = Field(default=LogLevel.INFO)

    # Nested Settings
    trip_api: TripApiSettings = Field(default_factory=TripApiSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    wizard: WizardSettings = Field(default_factory=WizardSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment setting"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def get_cors_config(self) -> Dict[str, Any]:
        """Get CORS configuration for FastAPI"""
        return {
            "allow_origins": self.security.cors_origins,
            "allow_credentials": self.security.cors_allow_credentials,
            "allow_methods": self.security.cors_allow_methods,
            "allow_headers": self.security.cors_allow_headers,
        }

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance"""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and files"""
    global settings
    settings = Settings()
    return settings
