# /aria-backend/app/services/storage_service.py

"""
Blob storage for exported and uploaded files.

Blobs live on local disk under `<root>/<owner>/<12 hex>-<filename>` and are
published through the `/files/{owner}/{blob}` route. The random prefix keeps
two uploads with the same filename from overwriting each other.
"""

import io
import logging
import mimetypes
import uuid
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from ..core.config import get_settings
from ..models.file_model import UploadRequest

logger = logging.getLogger(__name__)

BLOB_PREFIX_LENGTH = 12


@dataclass
class StoredBlob:
    owner: str
    blob_name: str
    filename: str
    size: int
    uploaded_at: datetime
    url: str
    download_url: str


class BlobStore:
    def __init__(self, root_dir: str, public_base_url: str):
        self.root = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/")

    def _owner_dir(self, owner: str) -> Path:
        return self.root / str(owner)

    def _to_blob(self, owner: str, path: Path) -> StoredBlob:
        stat = path.stat()
        url = f"{self.public_base_url}/files/{quote(str(owner))}/{quote(path.name)}"
        return StoredBlob(
            owner=str(owner),
            blob_name=path.name,
            filename=path.name[BLOB_PREFIX_LENGTH + 1:],
            size=stat.st_size,
            uploaded_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            url=url,
            download_url=f"{url}?download=1",
        )

    def put(self, owner: str, filename: str, data: bytes) -> StoredBlob:
        safe_name = Path(filename).name
        if not safe_name:
            raise ValueError("No filename provided")
        owner_dir = self._owner_dir(owner)
        owner_dir.mkdir(parents=True, exist_ok=True)
        path = owner_dir / f"{uuid.uuid4().hex[:BLOB_PREFIX_LENGTH]}-{safe_name}"
        path.write_bytes(data)
        logger.info("Stored blob %s (%d bytes)", path, len(data))
        return self._to_blob(owner, path)

    def list(self, owner: str, suffix: Optional[str] = None) -> List[StoredBlob]:
        owner_dir = self._owner_dir(owner)
        if not owner_dir.is_dir():
            return []
        paths = sorted(owner_dir.iterdir(), key=lambda p: p.stat().st_mtime, reverse=True)
        return [
            self._to_blob(owner, p)
            for p in paths
            if p.is_file() and (suffix is None or p.name.endswith(suffix))
        ]

    def resolve(self, owner: str, blob_name: str) -> Optional[Path]:
        """Maps a public blob reference back to a file, refusing anything outside the owner's directory."""
        root = self.root.resolve()
        owner_dir = self._owner_dir(owner).resolve()
        if owner_dir.parent != root:
            return None
        candidate = (owner_dir / blob_name).resolve()
        if candidate.parent != owner_dir or not candidate.is_file():
            return None
        return candidate


def ensure_md_extension(filename: str) -> str:
    return filename if filename.endswith(".md") else f"{filename}.md"


def guess_media_type(path: Path) -> str:
    if path.suffix == ".md":
        return "text/markdown"
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


def store_markdown(store: BlobStore, owner: str, content: str, filename: str) -> StoredBlob:
    return store.put(owner, ensure_md_extension(filename), content.encode("utf-8"))


def upload_files(store: BlobStore, owner: str, request: UploadRequest) -> dict:
    """
    Stores one markdown file, or bundles several into a single ZIP.
    Raises ValueError with a client-facing message on bad input.
    """
    if request.files is not None:
        files = request.files
        if not files:
            raise ValueError("No files provided")
        for entry in files:
            if not entry.content or not entry.filename:
                raise ValueError("Each file must have content and filename")

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as archive:
            for entry in files:
                archive.writestr(ensure_md_extension(entry.filename), entry.content)

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        blob = store.put(owner, f"chatbot-files-{timestamp}.zip", buffer.getvalue())
        return {
            "success": True,
            "type": "zip",
            "url": blob.url,
            "downloadUrl": blob.download_url,
            "filename": blob.filename,
            "size": blob.size,
            "fileCount": len(files),
        }

    if not request.content:
        raise ValueError("No content provided")
    if not request.filename:
        raise ValueError("No filename provided")

    blob = store_markdown(store, owner, request.content, request.filename)
    return {
        "success": True,
        "type": "single",
        "url": blob.url,
        "downloadUrl": blob.download_url,
        "filename": blob.filename,
        "size": blob.size,
    }


def list_markdown_files(store: BlobStore, owner: str) -> List[dict]:
    return [
        {
            "url": blob.url,
            "downloadUrl": blob.download_url,
            "filename": blob.filename,
            "size": blob.size,
            "uploadedAt": blob.uploaded_at,
        }
        for blob in store.list(owner, suffix=".md")
    ]


def get_blob_store() -> BlobStore:
    settings = get_settings()
    return BlobStore(settings.storage_dir, settings.public_base_url)
