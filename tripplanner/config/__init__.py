"""
Configuration package for the Trip Route Planner.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    TripApiSettings,
    GeocodingSettings,
    TransportSettings,
    WizardSettings,
    SecuritySettings,
    settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "TripApiSettings",
    "GeocodingSettings",
    "TransportSettings",
    "WizardSettings",
    "SecuritySettings",
    "settings",
    "get_settings",
    "reload_settings",
]
