"""
Filtering module for rental listings.

This module provides functionality to filter listings by search criteria,
favorites and cluster membership, and to order them for display.
"""

from .listing_filter import ListingFilter

__all__ = ['ListingFilter']
