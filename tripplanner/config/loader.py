"""
Configuration loader utility for environment-specific settings.
"""

import logging
import os
from pathlib import Path
from typing import Optional
from .settings import (
    Settings,
    Environment,
    TripApiSettings,
    GeocodingSettings,
    TransportSettings,
    WizardSettings,
    SecuritySettings,
)

logger = logging.getLogger(__name__)

# Nested sections read their own prefixed keys, so each one is given the env file too.
_SECTIONS = {
    "trip_api": TripApiSettings,
    "geocoding": GeocodingSettings,
    "transport": TransportSettings,
    "wizard": WizardSettings,
    "security": SecuritySettings,
}


def settings_from_env_file(env_file: str, **overrides) -> Settings:
    """Build settings with every section, nested ones included, read from ``env_file``"""
    sections = {name: section(_env_file=env_file) for name, section in _SECTIONS.items()}
    sections.update(overrides)
    return Settings(_env_file=env_file, **sections)


class ConfigLoader:
    """Utility class for loading environment-specific configurations"""

    @staticmethod
    def load_environment_config(environment: Optional[str] = None) -> Settings:
        """
        Load configuration for the specified environment.

        Args:
            environment: Target environment (development, staging, production, testing)
                        If None, uses ENVIRONMENT env var or defaults to development

        Returns:
            Settings instance with environment-specific configuration
        """
        if environment is None:
            environment = os.getenv("ENVIRONMENT", "development")

        env = Environment(environment.lower())
        env_file_path = Path(f".env.{env.value}")

        if env_file_path.exists():
            return settings_from_env_file(str(env_file_path), environment=env)

        logger.warning(
            f"Environment file {env_file_path} not found, using default settings",
            extra={"environment": env.value},
        )
        return Settings(environment=env)

    @staticmethod
    def get_available_environments() -> list[str]:
        """Get list of available environment configurations"""
        env_files = []
        for env_file in Path(".").glob(".env.*"):
            if env_file.name.endswith(".sample"):
                continue
            env_files.append(env_file.name.replace(".env.", ""))
        return sorted(env_files)

    @staticmethod
    def create_sample_env_file(environment: str, output_path: Optional[str] = None) -> str:
        """
        Create a sample .env file for the specified environment.

        Args:
            environment: Target environment
            output_path: Optional custom output path

        Returns:
            Path to the created sample file
        """
        env = Environment(environment.lower())

        if output_path is None:
            output_path = f".env.{env.value}.sample"

        defaults = Settings()

        sample_content = f"""# Sample configuration for {env.value} environment
# Copy this file to .env.{env.value} and modify as needed

# Application Configuration
APP_NAME={defaults.app_name}
ENVIRONMENT={env.value}
DEBUG={'true' if env == Environment.DEVELOPMENT else 'false'}
LOG_LEVEL={defaults.log_level.value}

# Server Configuration
HOST={defaults.host}
PORT={defaults.port}

# Trip API
TRIP_API_BASE_URL={defaults.trip_api.base_url}
TRIP_API_TOKEN=your-token-here
TRIP_API_TIMEOUT_SECONDS={defaults.trip_api.timeout_seconds}

# Geocoding
GEOCODING_USER_AGENT={defaults.geocoding.user_agent}
GEOCODING_MAX_RESULTS={defaults.geocoding.max_results}

# Transport suggestions (km)
TRANSPORT_WALK_MAX_KM={defaults.transport.walk_max_km}
TRANSPORT_LOCAL_MAX_KM={defaults.transport.local_max_km}
TRANSPORT_REGIONAL_MAX_KM={defaults.transport.regional_max_km}

# Wizard
WIZARD_BUDGET_CURRENCY={defaults.wizard.budget_currency}
"""

        with open(output_path, "w") as f:
            f.write(sample_content)

        return output_path


def load_config_for_environment(environment: Optional[str] = None) -> Settings:
    """Convenience function to load configuration for an environment"""
    return ConfigLoader.load_environment_config(environment)
