"""
Saved settings for Rent Scout.

This module persists the draft search (place and filters) and the favorite
listing ids to file-based storage, one JSON record each.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from rentscout.error_handling import SettingsStorageError
from rentscout.models import FilterCriteria


logger = logging.getLogger(__name__)

SEARCH_SETTINGS_RECORD = "rental_search_settings"
FAVORITES_RECORD = "rental_favorites"


class SettingsStore:
    """Reads and writes the saved-settings records.

    Every failure is raised as SettingsStorageError; the session controller
    reports it without interrupting the session.

    Attributes:
        base_dir: Directory holding the record files
    """

    def __init__(self, base_dir: str = "./rentscout_settings"):
        """Initialize settings store.

        Args:
            base_dir: Directory for the record files
        """
        self.base_dir = Path(base_dir)

    def _record_path(self, name: str) -> Path:
        return self.base_dir / f"{name}.json"

    def _read(self, name: str) -> Optional[object]:
        path = self._record_path(name)
        if not path.exists():
            logger.info(f"No saved record at {path}")
            return None
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse saved record {path}: {e}")
            raise SettingsStorageError(f"{path.name} is corrupted") from e
        except OSError as e:
            logger.error(f"Failed to read saved record {path}: {e}")
            raise SettingsStorageError(f"{path.name} could not be read") from e

    def _write(self, name: str, data: object) -> None:
        path = self._record_path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write saved record {path}: {e}")
            raise SettingsStorageError(f"{path.name} could not be written") from e
        logger.info(f"Saved record to {path}")

    def save_search(self, place: str, filters: FilterCriteria) -> None:
        """Persist the draft search to the saved-search slot."""
        self._write(SEARCH_SETTINGS_RECORD, {"place": place, "filters": filters.to_dict()})

    def load_search(self) -> Optional[Tuple[str, FilterCriteria]]:
        """Restore the saved search.

        Returns:
            (place, filters), or None when nothing has been saved
        """
        data = self._read(SEARCH_SETTINGS_RECORD)
        if data is None:
            return None
        try:
            return str(data["place"]), FilterCriteria.from_dict(data.get("filters") or {})
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Saved search has an unexpected layout: {e}")
            raise SettingsStorageError("saved search has an unexpected layout") from e

    def save_favorites(self, favorite_ids: List[str]) -> None:
        self._write(FAVORITES_RECORD, sorted(favorite_ids))

    def load_favorites(self) -> List[str]:
        data = self._read(FAVORITES_RECORD)
        if data is None:
            return []
        if not isinstance(data, list):
            raise SettingsStorageError("saved favorites are not a list")
        return [str(item) for item in data]
