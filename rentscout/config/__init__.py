"""Configuration module for Rent Scout."""

from .app_config import (
    APP_CONFIG,
    AppSettings,
    ClusterConfig,
    SourceConfig,
    StorageConfig,
    get_app_settings,
)

__all__ = [
    'APP_CONFIG',
    'AppSettings',
    'ClusterConfig',
    'SourceConfig',
    'StorageConfig',
    'get_app_settings',
]
