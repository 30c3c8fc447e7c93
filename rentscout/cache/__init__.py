"""Session-scoped caching of remote results."""

from .result_cache import ResultCache, image_key, listings_key, weather_key

__all__ = ['ResultCache', 'image_key', 'listings_key', 'weather_key']
