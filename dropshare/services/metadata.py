# dropshare/services/metadata.py
"""
JSON-backed metadata table: stored filename -> FileRecord.

The table is read from disk on every call and written back in full after
every mutation. `transaction()` holds a process-wide lock around that
load/mutate/save cycle so two requests in the same process cannot drop each
other's updates. Nothing protects against a second process.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

from dropshare.services.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass
class FileRecord:
    stored_name: str
    original_name: str
    upload_date: str
    downloads: int = 0

    def to_json(self) -> dict:
        return {
            "originalName": self.original_name,
            "uploadDate": self.upload_date,
            "downloads": self.downloads,
        }

    @classmethod
    def from_json(cls, stored_name: str, data: dict) -> "FileRecord":
        downloads = data.get("downloads", 0)
        if not isinstance(downloads, int) or isinstance(downloads, bool) or downloads < 0:
            raise ValueError(f"bad download counter: {downloads!r}")
        original = data["originalName"]
        upload_date = data["uploadDate"]
        if not isinstance(original, str) or not isinstance(upload_date, str):
            raise ValueError("originalName and uploadDate must be strings")
        return cls(stored_name, original, upload_date, downloads)


MetadataTable = Dict[str, FileRecord]


class MetadataStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> MetadataTable:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.error(f"Failed to parse metadata {self.path}: {e}; starting from an empty table")
            return {}
        except OSError as e:
            logger.error(f"Failed to read metadata {self.path}: {e}")
            raise StorageError(f"Could not read metadata: {e}") from e
        if not isinstance(raw, dict):
            logger.error(f"Metadata {self.path} is not a JSON object; starting from an empty table")
            return {}

        table: MetadataTable = {}
        for name, data in raw.items():
            try:
                table[name] = FileRecord.from_json(name, data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed metadata entry {name!r}: {e}")
        return table

    def save(self, table: MetadataTable) -> None:
        payload = json.dumps({k: r.to_json() for k, r in table.items()}, indent=2)
        tmp: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError as e:
            if tmp and os.path.exists(tmp):
                os.unlink(tmp)
            logger.error(f"Failed to write metadata {self.path}: {e}")
            raise StorageError(f"Could not save metadata: {e}") from e

    @contextmanager
    def locked(self) -> Iterator[MetadataTable]:
        """Load the table under the lock. Saving is up to the caller."""
        with self._lock:
            yield self.load()

    @contextmanager
    def transaction(self) -> Iterator[MetadataTable]:
        """Load the table under the lock, let the caller mutate it, then save it."""
        with self.locked() as table:
            yield table
            self.save(table)
