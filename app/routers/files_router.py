# /aria-backend/app/routers/files_router.py

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.deps import get_current_active_user
from ..db.models.user_models import User
from ..models import file_model
from ..services import storage_service
from ..services.storage_service import BlobStore, get_blob_store

router = APIRouter()


@router.post(
    "/upload",
    response_model=file_model.UploadResponse,
    response_model_exclude_none=True,
    summary="Upload Markdown Files",
    description="Stores one markdown file, or several bundled into a ZIP archive.",
)
def upload_files(
    request: file_model.UploadRequest,
    current_user: User = Depends(get_current_active_user),
    store: BlobStore = Depends(get_blob_store),
):
    try:
        return storage_service.upload_files(store, str(current_user.id), request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/list", response_model=file_model.FileListResponse, summary="List Markdown Files")
def list_files(
    current_user: User = Depends(get_current_active_user),
    store: BlobStore = Depends(get_blob_store),
):
    return {"files": storage_service.list_markdown_files(store, str(current_user.id))}
