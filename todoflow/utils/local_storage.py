"""
File-backed key/value storage with browser localStorage semantics
"""

import json
from pathlib import Path
from typing import Dict, Optional

from todoflow.utils.error_handler import StorageError
from todoflow.utils.logger import logger


class LocalStorage:
    """String slots persisted together in one JSON file"""

    def __init__(self, path: str, quota_bytes: int = 0):
        """
        Initialize local storage

        Args:
            path: Path to the storage file
            quota_bytes: Maximum encoded size of all slots (0 disables the check)
        """
        self.path = Path(path)
        self.quota_bytes = quota_bytes
        self.logger = logger

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} does not hold an object")
        return data

    def _write(self, data: Dict[str, str]):
        encoded = json.dumps(data, ensure_ascii=False)
        if self.quota_bytes and len(encoded.encode("utf-8")) > self.quota_bytes:
            raise StorageError(
                f"Storage quota exceeded ({len(encoded.encode('utf-8'))} > {self.quota_bytes} bytes)"
            )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(encoded)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        """
        Get slot value

        Args:
            key: Slot name

        Returns:
            Stored string or None if the slot is absent
        """
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str):
        """
        Overwrite slot value

        Raises:
            StorageError: Quota exceeded or the file cannot be written
        """
        try:
            data = self._read()
        except StorageError as e:
            # An unreadable file holds nothing worth keeping
            self.logger.warning(f"Discarding unreadable storage file: {e}")
            data = {}
        data[key] = value
        self._write(data)
        self.logger.debug(f"Stored slot '{key}' ({len(value)} chars)")

    def remove_item(self, key: str):
        """Remove slot if present"""
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self):
        """Remove all slots"""
        self._write({})
