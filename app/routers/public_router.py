# /aria-backend/app/routers/public_router.py

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from ..services.storage_service import BlobStore, get_blob_store, guess_media_type, BLOB_PREFIX_LENGTH

router = APIRouter()


@router.get(
    "/{owner}/{blob_name}",
    summary="Fetch a Stored File",
    tags=["Public"]
)
def get_stored_file(
    owner: str,
    blob_name: str,
    download: bool = False,
    store: BlobStore = Depends(get_blob_store)
):
    """
    An unauthenticated endpoint serving exported files. The random prefix on
    every blob name makes the links unguessable, like public object-store URLs.
    """
    path = store.resolve(owner, blob_name)
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found.")

    if download:
        return FileResponse(path, media_type=guess_media_type(path), filename=blob_name[BLOB_PREFIX_LENGTH + 1:])
    return FileResponse(path, media_type=guess_media_type(path))
