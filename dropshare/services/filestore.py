# dropshare/services/filestore.py
from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote

from dropshare.services.errors import NotFound, StorageError, ValidationError
from dropshare.services.metadata import FileRecord, MetadataStore

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_TRAILING_JUNK = re.compile(r"[.\s]+$")


@dataclass
class StoredUpload:
    stored_name: str
    original_name: str
    url: str


@dataclass
class UploadResult:
    files: List[StoredUpload] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


@dataclass
class PublicEntry:
    original_name: str
    url: str


@dataclass
class AdminEntry:
    stored_name: str
    original_name: str
    upload_date: Optional[str]
    downloads: int
    url: str


@dataclass
class DownloadTarget:
    path: Path
    filename: str


def download_url(stored_name: str) -> str:
    return f"/download/{quote(stored_name)}"


def _basename(name: str) -> str:
    return name.replace("\\", "/").rsplit("/", 1)[-1]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FileStore:
    def __init__(self, upload_dir, blocked_extensions: Iterable[str], metadata_filename: str = "metadata.json"):
        self.upload_dir = Path(upload_dir).resolve()
        self.blocked_extensions = frozenset(e.lower().lstrip(".") for e in blocked_extensions)
        self.metadata_filename = metadata_filename
        self.metadata = MetadataStore(self.upload_dir / metadata_filename)

    # ---- naming / path safety ----

    def is_blocked(self, name: str) -> bool:
        # "virus.exe." and "virus.exe " still count as .exe
        name = _TRAILING_JUNK.sub("", (name or "").lower())
        ext = name.rsplit(".", 1)[-1] if "." in name else ""
        return ext in self.blocked_extensions

    def make_stored_name(self, original_name: str) -> str:
        safe = _UNSAFE_CHARS.sub("_", _basename(original_name or "")).strip("._") or "file"
        while True:
            candidate = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{safe}"
            if not (self.upload_dir / candidate).exists():
                return candidate

    def resolve(self, stored_name: str) -> Path:
        """
        Map a caller-supplied stored name to a path inside the upload directory.

        Directory components are dropped, so "../../etc/passwd" becomes "passwd".
        Raises NotFound for names that cannot refer to a stored file.
        """
        name = _basename(stored_name or "")
        if not name or name in (".", "..") or name.startswith(".") or name == self.metadata_filename:
            raise NotFound(f"File not found: {stored_name}")
        path = (self.upload_dir / name).resolve()
        if path.parent != self.upload_dir:
            raise NotFound(f"File not found: {stored_name}")
        return path

    def _existing(self, stored_name: str) -> Path:
        path = self.resolve(stored_name)
        if not path.is_file():
            raise NotFound(f"File not found: {stored_name}")
        return path

    # ---- upload ----

    def upload(self, files: List[Tuple[str, bytes]]) -> UploadResult:
        if not files:
            raise ValidationError("No files uploaded.")

        result = UploadResult()
        accepted: List[Tuple[str, str, bytes]] = []
        for original_name, content in files:
            original_name = original_name or "unnamed"
            if self.is_blocked(original_name):
                logger.warning(f"Rejected upload with blocked extension: {original_name!r}")
                result.rejected.append(original_name)
                continue
            accepted.append((self.make_stored_name(original_name), original_name, content))

        if not accepted:
            raise ValidationError(
                "No valid files uploaded. Blocked file extensions are: "
                + ", ".join(f".{e}" for e in sorted(self.blocked_extensions)),
                rejected=result.rejected,
            )

        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            for stored_name, _, content in accepted:
                (self.upload_dir / stored_name).write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write upload to {self.upload_dir}: {e}")
            raise StorageError(f"Could not store file: {e}") from e

        uploaded_at = _now_iso()
        with self.metadata.transaction() as table:
            for stored_name, original_name, _ in accepted:
                table[stored_name] = FileRecord(stored_name, original_name, uploaded_at, 0)
                result.files.append(StoredUpload(stored_name, original_name, download_url(stored_name)))

        logger.info(f"Stored {len(result.files)} file(s), rejected {len(result.rejected)}")
        return result

    # ---- listing ----

    def _stored_names(self) -> List[str]:
        if not self.upload_dir.is_dir():
            return []
        try:
            names = [
                p.name for p in self.upload_dir.iterdir()
                if p.is_file() and not p.name.startswith(".") and p.name != self.metadata_filename
            ]
        except OSError as e:
            logger.error(f"Unable to list {self.upload_dir}: {e}")
            raise StorageError("Unable to list files") from e
        # names start with the upload time in millis: newest first
        return sorted(names, reverse=True)

    def list_public(self) -> List[PublicEntry]:
        table = self.metadata.load()
        out = []
        for name in self._stored_names():
            rec = table.get(name)
            out.append(PublicEntry(rec.original_name if rec else name, download_url(name)))
        return out

    def list_admin(self) -> List[AdminEntry]:
        table = self.metadata.load()
        out = []
        for name in self._stored_names():
            rec = table.get(name)
            out.append(AdminEntry(
                stored_name=name,
                original_name=rec.original_name if rec else name,
                upload_date=rec.upload_date if rec else None,
                downloads=rec.downloads if rec else 0,
                url=download_url(name),
            ))
        return out

    # ---- download / delete ----

    def download(self, stored_name: str) -> DownloadTarget:
        path = self._existing(stored_name)
        original = None
        try:
            with self.metadata.locked() as table:
                rec = table.get(path.name)
                if rec is not None:
                    original = rec.original_name
                    rec.downloads += 1
                    self.metadata.save(table)
        except StorageError as e:
            logger.warning(f"Download counter for {path.name} not updated: {e}")
        return DownloadTarget(path, original or path.name)

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            raise StorageError(f"Could not delete file: {e}") from e

    def delete(self, stored_name: str) -> None:
        path = self._existing(stored_name)
        with self.metadata.transaction() as table:
            self._remove(path)
            table.pop(path.name, None)
        logger.info(f"Deleted {path.name}")

    def delete_many(self, stored_names: Iterable[str]) -> List[str]:
        deleted: List[str] = []
        with self.metadata.transaction() as table:
            for name in stored_names:
                try:
                    path = self._existing(name)
                except NotFound:
                    continue
                self._remove(path)
                table.pop(path.name, None)
                deleted.append(path.name)
        logger.info(f"Bulk delete removed {len(deleted)} file(s)")
        return deleted

    def prune_orphans(self) -> List[str]:
        """Drop metadata records whose file no longer exists."""
        with self.metadata.transaction() as table:
            present = set(self._stored_names())
            pruned = [name for name in table if name not in present]
            for name in pruned:
                del table[name]
        if pruned:
            logger.info(f"Pruned {len(pruned)} orphaned metadata record(s)")
        return pruned
