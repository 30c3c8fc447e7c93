"""Search session state and saved settings."""

from .search_controller import (
    LoadStatus,
    RegionState,
    SearchSessionController,
    SearchViewModel,
    SessionViewState,
)
from .settings_store import SettingsStore

__all__ = [
    'LoadStatus',
    'RegionState',
    'SearchSessionController',
    'SearchViewModel',
    'SessionViewState',
    'SettingsStore',
]
