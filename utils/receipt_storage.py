"""Durable storage for receipt attachments uploaded with an expense."""
import re
import uuid
import logging
from pathlib import Path
from typing import Optional
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

_SAFE_SUFFIX = re.compile(r"^\.[a-z0-9]{1,10}$")


class ReceiptStorage:
    """
    Writes uploaded receipts under a single root directory using generated
    file names, and hands back references of the form ``{url_prefix}/{name}``.

    The same root is mounted for static serving and used for deletion, so a
    stored reference always maps back to the file that was written.
    """

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root).resolve()
        self.url_prefix = "/" + url_prefix.strip("/")

    def initialize(self) -> None:
        """Creates the storage root. Called once during application startup."""
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Receipt storage ready at {self.root}")

    def _generate_name(self, original_filename: str) -> str:
        suffix = Path(original_filename).suffix.lower()
        if not _SAFE_SUFFIX.match(suffix):
            suffix = ""
        return f"{uuid.uuid4().hex}{suffix}"

    def path_for(self, reference: Optional[str]) -> Optional[Path]:
        """Resolves a stored reference to its file path, or None if it does not belong to this storage."""
        if not reference or not reference.startswith(self.url_prefix + "/"):
            return None
        name = reference[len(self.url_prefix) + 1:]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.root / name

    async def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        """Persists an uploaded file and returns its reference, or None when nothing was uploaded."""
        if upload is None or not upload.filename:
            return None

        name = self._generate_name(upload.filename)
        await upload.seek(0)
        content = await upload.read()
        await run_in_threadpool((self.root / name).write_bytes, content)
        logger.info(f"Stored receipt '{upload.filename}' as {name} ({len(content)} bytes)")
        return f"{self.url_prefix}/{name}"

    def exists(self, reference: Optional[str]) -> bool:
        path = self.path_for(reference)
        return path is not None and path.is_file()

    def delete(self, reference: Optional[str]) -> bool:
        """Best-effort removal of a stored receipt. Never raises."""
        path = self.path_for(reference)
        if path is None:
            if reference:
                logger.warning(f"Receipt reference '{reference}' is not managed by this storage, skipping delete.")
            return False
        try:
            path.unlink()
            logger.info(f"Deleted receipt file {path.name}")
            return True
        except FileNotFoundError:
            logger.warning(f"Receipt file {path.name} already missing.")
            return False
        except OSError as e:
            logger.warning(f"Could not delete receipt file {path.name}: {e}")
            return False
