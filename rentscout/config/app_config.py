"""Application configuration settings for Rent Scout."""

from dataclasses import dataclass
import os

from rentscout.clustering import DEFAULT_CLUSTER_RADIUS
from rentscout.error_handling import RetryConfig


@dataclass
class ClusterConfig:
    """Map clustering configuration."""
    radius: float = DEFAULT_CLUSTER_RADIUS


@dataclass
class StorageConfig:
    """Saved settings storage configuration."""
    base_dir: str = "./rentscout_settings"


@dataclass
class SourceConfig:
    """Remote data source configuration."""
    listing_count: int = 15
    max_web_searches: int = 5
    text_model: str = "claude-haiku-4-5"
    image_model: str = "imagen-4.0-generate-001"
    enhance_model: str = "gemini-2.5-flash-image"


@dataclass
class AppSettings:
    """Main application configuration settings."""
    default_place: str = "San Francisco, CA"
    retry_config: RetryConfig = None
    image_retry_config: RetryConfig = None
    cluster_config: ClusterConfig = None
    storage_config: StorageConfig = None
    source_config: SourceConfig = None

    def __post_init__(self):
        """Initialize nested configs if not provided."""
        if self.retry_config is None:
            self.retry_config = RetryConfig()
        if self.image_retry_config is None:
            self.image_retry_config = RetryConfig(max_retries=2, initial_delay_seconds=2.0)
        if self.cluster_config is None:
            self.cluster_config = ClusterConfig()
        if self.storage_config is None:
            self.storage_config = StorageConfig()
        if self.source_config is None:
            self.source_config = SourceConfig()


# Default application configuration
APP_CONFIG = {
    "default_place": os.getenv("DEFAULT_PLACE", "San Francisco, CA"),
    "retry_config": {
        "max_retries": int(os.getenv("MAX_RETRIES", "4")),
        "initial_delay_seconds": float(os.getenv("INITIAL_DELAY_SECONDS", "1.0")),
        "jitter_seconds": float(os.getenv("JITTER_SECONDS", "1.0")),
    },
    "image_retry_config": {
        "max_retries": int(os.getenv("IMAGE_MAX_RETRIES", "2")),
        "initial_delay_seconds": float(os.getenv("IMAGE_INITIAL_DELAY_SECONDS", "2.0")),
        "jitter_seconds": float(os.getenv("JITTER_SECONDS", "1.0")),
    },
    "cluster_config": {
        "radius": float(os.getenv("CLUSTER_RADIUS", str(DEFAULT_CLUSTER_RADIUS))),
    },
    "storage_config": {
        "base_dir": os.getenv("SETTINGS_DIR", "./rentscout_settings"),
    },
    "source_config": {
        "listing_count": int(os.getenv("LISTING_COUNT", "15")),
        "max_web_searches": int(os.getenv("MAX_WEB_SEARCHES", "5")),
        "text_model": os.getenv("TEXT_MODEL", "claude-haiku-4-5"),
        "image_model": os.getenv("IMAGE_MODEL", "imagen-4.0-generate-001"),
        "enhance_model": os.getenv("ENHANCE_MODEL", "gemini-2.5-flash-image"),
    },
}


def get_app_settings() -> AppSettings:
    """Get application settings from configuration."""
    return AppSettings(
        default_place=APP_CONFIG["default_place"],
        retry_config=RetryConfig(**APP_CONFIG["retry_config"]),
        image_retry_config=RetryConfig(**APP_CONFIG["image_retry_config"]),
        cluster_config=ClusterConfig(**APP_CONFIG["cluster_config"]),
        storage_config=StorageConfig(**APP_CONFIG["storage_config"]),
        source_config=SourceConfig(**APP_CONFIG["source_config"]),
    )
