"""Remote data sources for listings, weather and listing imagery."""

from .base import RentalDataSource
from .generative_source import GenerativeDataSource

__all__ = ['RentalDataSource', 'GenerativeDataSource']
