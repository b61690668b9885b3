"""
Persistence service for the Sideline Rotation Engine.

Writes a whole record store to a JSON file and reads it back, so a match
day can survive a restart of the web app.
"""
import datetime
import json
import logging
import os
from typing import List, Optional, Tuple

from .errors import PersistenceError
from .record_store import InMemoryRecordStore

logger = logging.getLogger(__name__)

AUTOSAVE_PREFIX = "sideline_autosave_"


class PersistenceService:
    """
    Service for persisting record stores to JSON files.

    Open play-time intervals and the running game's wall-clock anchor are
    saved as they are, so a game loaded from a file mid-match picks up where
    it left off.
    """

    @staticmethod
    def save_store_to_file(store: InMemoryRecordStore, file_path: str) -> None:
        """
        Write every record of ``store`` to ``file_path``.

        Missing parent directories are created. OSError propagates to the
        caller.
        """
        snapshot = store.export_snapshot()

        parent = os.path.dirname(file_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as out:
            json.dump(snapshot, out, indent=2)
        logger.debug("Saved %d games to %s", len(snapshot["games"]), file_path)

    @staticmethod
    def load_store_from_file(file_path: str) -> InMemoryRecordStore:
        """
        Rebuild a store from a file written by ``save_store_to_file``.

        Raises:
            FileNotFoundError: No file at ``file_path``
            PersistenceError: The file is not JSON or holds a malformed record
        """
        if not os.path.isfile(file_path):
            raise FileNotFoundError(f"Store file not found: {file_path}")

        with open(file_path, encoding="utf-8") as src:
            try:
                data = json.load(src)
            except ValueError as e:
                raise PersistenceError(f"Invalid store file {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Invalid store file {file_path}: expected an object")
        try:
            return InMemoryRecordStore.from_snapshot(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Invalid record in {file_path}: {e}") from e

    @staticmethod
    def auto_save(store: InMemoryRecordStore, auto_save_dir: str = "autosave") -> Optional[str]:
        """Save under a timestamped name; return the path, or None on failure."""
        stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        file_path = os.path.join(auto_save_dir, f"{AUTOSAVE_PREFIX}{stamp}.json")
        try:
            PersistenceService.save_store_to_file(store, file_path)
        except (OSError, TypeError, ValueError):
            logger.exception("Auto-save to %s failed", auto_save_dir)
            return None
        return file_path

    @staticmethod
    def get_recent_saves(save_dir: str = ".", limit: int = 10) -> List[Tuple[str, float]]:
        """(file name, mtime) pairs for the JSON saves in ``save_dir``, newest first."""
        if not os.path.isdir(save_dir):
            return []

        try:
            saves = [
                (entry.name, entry.stat().st_mtime)
                for entry in os.scandir(save_dir)
                if entry.is_file() and entry.name.endswith(".json")
            ]
        except OSError:
            logger.exception("Could not list saves in %s", save_dir)
            return []
        saves.sort(key=lambda item: item[1], reverse=True)
        return saves[:limit]
