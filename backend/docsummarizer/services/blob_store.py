"""
DocSummarizer Backend: Blob Store
==================================

What:  Stores raw uploaded bytes on the local storage volume under keys the
       store generates itself.
Why:   Document bytes live outside the database; the record only keeps the key.
How:   Async file I/O through aiofiles. Keys are date-organized:
           YYYY/MM/DD/<32 hex random token><ms timestamp><ext>
       The extension is the only part taken from the client's file name and is
       reduced to a short alphanumeric suffix, so keys never contain
       user-controlled path segments.
Who:   DocumentService (put during upload, delete during compensation) and the
       health check (exists / writable probe).

Directory Structure:
    storage/
    └── 2024/
        └── 01/
            └── 15/
                ├── 3f9c...e21a1705312000123.pdf
                └── 81b0...9c4d1705312000456.docx
"""

import logging
import re
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os

from docsummarizer import messages
from docsummarizer.exceptions import StorageError

logger = logging.getLogger(__name__)

_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")


class BlobStore:
    """
    Content storage keyed by opaque strings.

    put(data, suggested_name) -> key
    get(key) -> bytes
    delete(key) -> None       (a missing key is not an error)
    exists(key) -> bool

    Any key that resolves outside the storage root is rejected with
    StorageError before the file system is touched.
    """

    def __init__(self, storage_root: str):
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("BlobStore initialized with storage_root=%s", self.storage_root)

    # ── Key handling ──────────────────────────────────────────────────────
    @staticmethod
    def _extension_of(suggested_name: str) -> str:
        ext = Path(suggested_name or "").suffix.lower()
        return ext if _SAFE_EXTENSION.match(ext) else ""

    def generate_key(self, suggested_name: str) -> str:
        """Builds a fresh YYYY/MM/DD/<token><ms><ext> key."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        token = secrets.token_hex(16)
        millis = int(time.time() * 1000)
        return f"{date_dir}/{token}{millis}{self._extension_of(suggested_name)}"

    def _resolve(self, key: str) -> Path:
        path = (self.storage_root / key).resolve()
        if not key or not path.is_relative_to(self.storage_root) or path == self.storage_root:
            raise StorageError(
                message=messages.FILE_KEY_INVALID,
                context={"key": key},
            )
        return path

    # ── Operations ────────────────────────────────────────────────────────
    async def put(self, data: bytes, suggested_name: str) -> str:
        """
        Writes `data` under a newly generated key and returns the key.

        Raises:
            StorageError if the directory cannot be created or the write fails.
        """
        key = self.generate_key(suggested_name)
        path = self._resolve(key)

        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to store blob %s: %s", key, str(e))
            raise StorageError(
                message=messages.FILE_SAVE_FAILED,
                context={"key": key, "os_error": str(e)},
            )

        logger.info("%s key=%s (%d bytes)", messages.FILE_SAVED, key, len(data))
        return key

    async def get(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read blob %s: %s", key, str(e))
            raise StorageError(
                message=messages.FILE_READ_FAILED,
                context={"key": key, "os_error": str(e)},
            )

    async def delete(self, key: str) -> None:
        """
        Removes the blob for `key`. Deleting a key that does not exist is a
        no-op, so compensation can call it unconditionally.
        """
        path = self._resolve(key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug("Blob already gone: %s", key)
            return
        except OSError as e:
            logger.error("Failed to delete blob %s: %s", key, str(e))
            raise StorageError(
                message=messages.FILE_DELETE_FAILED,
                context={"key": key, "os_error": str(e)},
            )
        logger.info("%s key=%s", messages.FILE_DELETED, key)

    async def exists(self, key: str) -> bool:
        path = self._resolve(key)
        return await aiofiles.os.path.isfile(path)

    async def is_writable(self) -> bool:
        """Health probe: the storage root exists and accepts writes."""
        probe = self.storage_root / f".probe-{secrets.token_hex(4)}"
        try:
            async with aiofiles.open(probe, "wb") as f:
                await f.write(b"ok")
            await aiofiles.os.remove(probe)
        except OSError as e:
            logger.warning("Storage root not writable: %s", str(e))
            return False
        return True
