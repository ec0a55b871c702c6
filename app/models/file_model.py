# /aria-backend/app/models/file_model.py

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class FileEntry(BaseModel):
    content: Optional[str] = None
    filename: Optional[str] = None


class UploadRequest(BaseModel):
    """
    Body for POST /api/files/upload.

    Single file: {"content": ..., "filename": ...}
    Several files: {"files": [{"content": ..., "filename": ...}, ...]}, bundled into one ZIP.
    """
    content: Optional[str] = None
    filename: Optional[str] = None
    files: Optional[List[FileEntry]] = None


class UploadResponse(BaseModel):
    success: bool = True
    type: str
    url: str
    downloadUrl: str
    filename: str
    size: int
    fileCount: Optional[int] = None


class StoredFile(BaseModel):
    url: str
    downloadUrl: str
    filename: str
    size: int
    uploadedAt: datetime


class FileListResponse(BaseModel):
    files: List[StoredFile]


class MessageDownloadResponse(BaseModel):
    downloadUrl: str
    filename: str
