"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    SchedulingConfig: Named scheduling constants
    get_scheduling_config: Scheduling constants built from settings
    get_supabase_client: Cached Supabase client
    check_connection: Health check function
"""

from config.settings import settings, get_settings, Settings
from config.scheduling import SchedulingConfig, get_scheduling_config
from config.database import (
    get_supabase_client,
    check_connection,
    ConnectionError
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Scheduling
    "SchedulingConfig",
    "get_scheduling_config",

    # Database
    "get_supabase_client",
    "check_connection",
    "ConnectionError",
]
