"""Local filesystem storage for resume originals and staged uploads.

Storage layout:
    <storage_dir>/<key>                                    — durable originals
    <upload_dir>/incoming/<stem>_<YYYYMMDD_HHmmss>_<id>.<ext> — staged uploads
"""

import asyncio
import dataclasses
import hashlib
import hmac
import logging
import mimetypes
import re
import time
import uuid
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

from resume_rag.application.interfaces.object_storage import ObjectStorage, StagedFile
from resume_rag.domain.exceptions import ExtractionFailed, ValidationError

logger = logging.getLogger(__name__)


def _datetime_stamp() -> str:
    """Return a UTC datetime stamp suitable for filenames: YYYYMMDD_HHmmss."""
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _sanitise(name: str, max_len: int = 80) -> str:
    """Replace non-word characters with underscores and truncate."""
    return re.sub(r"[^\w\-]", "_", name)[:max_len].strip("_") or "unnamed"


def _guess_media_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class LocalObjectStorage(ObjectStorage):
    """Infrastructure adapter for local durable storage and upload staging."""

    def __init__(
        self,
        storage_dir: str,
        upload_dir: str,
        *,
        base_url: str = "http://localhost:8000/files",
        signing_key: str = "change-me",
    ):
        self._storage_dir = Path(storage_dir)
        self._upload_dir = Path(upload_dir)
        self._base_url = base_url.rstrip("/")
        self._signing_key = signing_key.encode("utf-8")
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    # ── Durable objects ─────────────────────────────────────────────

    def _object_path(self, key: str) -> Path:
        path = (self._storage_dir / key).resolve()
        if not path.is_relative_to(self._storage_dir.resolve()):
            raise ValidationError(f"Invalid storage key: {key}")
        return path

    async def put_object(self, content: bytes, key: str, content_type: str) -> str:
        path = self._object_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, content)
        logger.info("Stored object %s (%d bytes, %s)", key, len(content), content_type)
        return key

    async def delete_object(self, key: str) -> None:
        path = self._object_path(key)
        path.unlink(missing_ok=True)
        logger.info("Deleted object %s", key)

    async def signed_url(self, key: str, ttl: int = 3600) -> str:
        """URL carrying an expiry and an HMAC-SHA256 signature over key and expiry."""
        expires = int(time.time()) + ttl
        return f"{self._base_url}/{quote(key)}?expires={expires}&signature={self.sign(key, expires)}"

    def sign(self, key: str, expires: int) -> str:
        message = f"{key}:{expires}".encode("utf-8")
        return hmac.new(self._signing_key, message, hashlib.sha256).hexdigest()

    def verify(self, key: str, expires: int, signature: str) -> bool:
        if expires < time.time():
            return False
        return hmac.compare_digest(self.sign(key, expires), signature)

    # ── Staging ─────────────────────────────────────────────────────

    async def stage_upload(self, content: bytes, filename: str) -> StagedFile:
        """Store an upload in ``<upload_dir>/incoming/``.

        The filename is augmented with a UTC datetime stamp and a short random
        suffix to avoid collisions.
        """
        incoming = self._upload_dir / "incoming"
        incoming.mkdir(parents=True, exist_ok=True)

        stem = Path(filename).stem
        suffix = Path(filename).suffix.lower()  # includes the dot
        stamped_name = f"{_sanitise(stem)}_{_datetime_stamp()}_{uuid.uuid4().hex[:8]}{suffix}"

        dest_path = incoming / stamped_name
        await asyncio.to_thread(dest_path.write_bytes, content)
        logger.info("Staged upload: %s (%d bytes)", dest_path, len(content))

        return StagedFile(
            path=str(dest_path),
            filename=Path(filename).name,
            byte_size=len(content),
            media_type=_guess_media_type(filename),
        )

    # ── ZIP Handling ────────────────────────────────────────────────

    async def expand_archive(
        self, archive_path: str, allowed_extensions: frozenset[str]
    ) -> list[StagedFile]:
        """Stage each allowed member of a ZIP archive individually.

        Directories, hidden files and ``__MACOSX`` entries are skipped. Each
        staged file is named by its full path inside the archive, so members
        sharing a basename in different folders stay distinct.
        """
        try:
            members = await asyncio.to_thread(self._read_members, archive_path, allowed_extensions)
        except (zipfile.BadZipFile, OSError) as exc:
            raise ExtractionFailed(f"Could not read archive: {exc}") from exc

        staged: list[StagedFile] = []
        for name, content in members:
            staged_file = await self.stage_upload(content, name)
            staged.append(dataclasses.replace(staged_file, filename=name))
            logger.info("Extracted from ZIP: %s (%d bytes)", name, len(content))
        return staged

    @staticmethod
    def _read_members(
        archive_path: str, allowed_extensions: frozenset[str]
    ) -> list[tuple[str, bytes]]:
        members: list[tuple[str, bytes]] = []
        with zipfile.ZipFile(archive_path, "r") as zf:
            for entry in zf.infolist():
                if entry.is_dir() or entry.filename.startswith("__MACOSX"):
                    continue
                name = Path(entry.filename).name
                if name.startswith("."):
                    continue
                if Path(name).suffix.lower() not in allowed_extensions:
                    continue
                members.append((entry.filename, zf.read(entry.filename)))
        return members
