"""
Document storage collaborator – durable home for uploaded prescription
documents. Files land in UPLOAD_FOLDER and are referenced by URL.
"""

import logging
import os
import time
import uuid

from werkzeug.utils import secure_filename

from rxgate.config import Config
from rxgate.errors import StorageUnavailable

logger = logging.getLogger("rxgate.storage")

_storage = None


def build_document_name(owner_id: int, filename: str) -> str:
    """Unique, filesystem-safe name for one verification upload."""
    safe = secure_filename(filename or "") or "document"
    return f"verification_{owner_id}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{safe}"


def owner_of(name: str):
    """Owner id encoded in a document name, or None when it does not parse."""
    parts = name.split("_", 2)
    if len(parts) < 3 or parts[0] != "verification" or not parts[1].isdigit():
        return None
    return int(parts[1])


class LocalDocumentStorage:
    def __init__(self, folder: str, base_url: str):
        self.folder = folder
        self.base_url = base_url.rstrip("/")

    def upload(self, data: bytes, name: str) -> str:
        """Write `data` under `name` and return its reference URL."""
        try:
            os.makedirs(self.folder, exist_ok=True)
            with open(os.path.join(self.folder, name), "xb") as fh:
                fh.write(data)
        except OSError as exc:
            logger.error("Document upload %s failed: %s", name, exc)
            raise StorageUnavailable() from exc
        return f"{self.base_url}/{name}"

    def delete(self, ref: str) -> None:
        name = ref.rsplit("/", 1)[-1]
        try:
            os.remove(os.path.join(self.folder, name))
        except OSError as exc:
            raise StorageUnavailable() from exc

    def path_for(self, name: str):
        """Absolute path of a stored document, or None when it doesn't exist."""
        if secure_filename(name) != name:
            return None
        path = os.path.join(os.path.abspath(self.folder), name)
        return path if os.path.isfile(path) else None


def get_storage() -> LocalDocumentStorage:
    global _storage
    if _storage is None:
        _storage = LocalDocumentStorage(Config.UPLOAD_FOLDER, Config.DOCUMENT_BASE_URL)
    return _storage
