"""
JSON file storage for API documents.

Each document is stored as <api_id>.json under the configured storage
directory. Writes go to a temporary file first and are moved into place, so a
failed save never leaves a half-written document behind.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from .config_loader import get_config_value
from .exceptions import PersistenceError
from .schema_node import ApiData

logger = logging.getLogger(__name__)

_API_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class ApiStore:
    """Reads and writes API documents in a directory of JSON files."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        if base_dir is None:
            base_dir = get_config_value('storage', 'api_dir', 'apis')
        self.base_dir = Path(base_dir)

    def _path_for(self, api_id: str, operation: str) -> Path:
        if not isinstance(api_id, str) or not _API_ID_PATTERN.match(api_id):
            raise PersistenceError(str(api_id), operation, ValueError(f"invalid API id '{api_id}'"))
        return self.base_dir / f"{api_id}.json"

    def save_api(self, api_id: str, data: Dict[str, Any]) -> Path:
        """
        Write a persisted API document atomically.

        Args:
            api_id: Identifier of the document
            data: Document in persisted shape (ApiData.to_dict output)

        Returns:
            Path of the written file

        Raises:
            PersistenceError: If the directory or file cannot be written
        """
        api_path = self._path_for(api_id, "save")
        temp_path = api_path.with_suffix(f"{api_path.suffix}.tmp")

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, api_path)
        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise PersistenceError(api_id, "save", e) from e

        logger.info(f"Saved API document: {api_path}")
        return api_path

    def load_api(self, api_id: str) -> Optional[Dict[str, Any]]:
        """
        Read a persisted API document.

        Args:
            api_id: Identifier of the document

        Returns:
            The document, or None if it does not exist

        Raises:
            PersistenceError: If the file cannot be read or is not valid JSON
        """
        api_path = self._path_for(api_id, "load")
        if not api_path.exists():
            logger.debug(f"No stored document for API '{api_id}'")
            return None

        try:
            with open(api_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(api_id, "load", e) from e

    def load_api_data(self, api_id: str) -> Optional[ApiData]:
        """Read a document and load it into the typed model."""
        data = self.load_api(api_id)
        if data is None:
            return None
        try:
            return ApiData.from_dict(data)
        except (KeyError, ValueError) as e:
            raise PersistenceError(api_id, "load", e) from e

    def list_apis(self) -> List[str]:
        """Return the ids of all stored documents, sorted."""
        if not self.base_dir.exists():
            return []
        return sorted(path.stem for path in self.base_dir.glob("*.json") if path.is_file())
