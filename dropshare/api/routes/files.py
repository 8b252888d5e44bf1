import logging
from typing import List

from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from starlette.concurrency import run_in_threadpool
from starlette.responses import FileResponse

from dropshare.api.deps import get_store
from dropshare.services.errors import NotFound, StorageError, ValidationError
from dropshare.services.filestore import FileStore

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/upload")
async def upload(files: List[UploadFile] = File(...), store: FileStore = Depends(get_store)):
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded.")
    inputs = []
    for f in files:
        data = await f.read()
        inputs.append((f.filename, data))

    # disk writes and the metadata lock stay off the event loop
    try:
        result = await run_in_threadpool(store.upload, inputs)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "rejected": e.rejected})
    except StorageError as e:
        logger.exception("Upload failed")
        raise HTTPException(status_code=500, detail=f"Upload failed: {e}")

    return {
        "message": f"{len(result.files)} files uploaded successfully",
        "files": [
            {"storedName": f.stored_name, "originalName": f.original_name, "url": f.url}
            for f in result.files
        ],
        "rejected": result.rejected,
    }

@router.get("/files")
def list_files(store: FileStore = Depends(get_store)):
    try:
        entries = store.list_public()
    except StorageError:
        raise HTTPException(status_code=500, detail="Unable to list files")
    return [{"originalName": e.original_name, "url": e.url} for e in entries]

@router.get("/download/{stored_name:path}")
def download(stored_name: str, store: FileStore = Depends(get_store)):
    try:
        target = store.download(stored_name)
    except NotFound:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(target.path, filename=target.filename, media_type="application/octet-stream")
