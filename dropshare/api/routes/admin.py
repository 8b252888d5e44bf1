from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from dropshare.api.deps import check_admin_password, get_settings, get_store, require_admin
from dropshare.services.errors import NotFound, StorageError
from dropshare.services.filestore import FileStore

router = APIRouter()

class VerifyRequest(BaseModel):
    password: str = ""

class BulkDeleteRequest(BaseModel):
    storedNames: List[str]

@router.post("/verify")
def verify(body: VerifyRequest, request: Request):
    if not check_admin_password(body.password, get_settings(request).ADMIN_PASSWORD):
        raise HTTPException(status_code=401, detail="Invalid password")
    return {"success": True}

@router.get("/files", dependencies=[Depends(require_admin)])
def list_files(store: FileStore = Depends(get_store)):
    try:
        entries = store.list_admin()
    except StorageError:
        raise HTTPException(status_code=500, detail="Unable to list files")
    return [
        {
            "storedName": e.stored_name,
            "originalName": e.original_name,
            "uploadDate": e.upload_date,
            "downloads": e.downloads,
            "url": e.url,
        }
        for e in entries
    ]

@router.post("/files/delete-bulk", dependencies=[Depends(require_admin)])
def delete_bulk(body: BulkDeleteRequest, store: FileStore = Depends(get_store)):
    try:
        deleted = store.delete_many(body.storedNames)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Bulk delete failed: {e}")
    return {"deletedCount": len(deleted), "deleted": deleted}

@router.post("/files/prune", dependencies=[Depends(require_admin)])
def prune(store: FileStore = Depends(get_store)):
    try:
        pruned = store.prune_orphans()
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Prune failed: {e}")
    return {"prunedCount": len(pruned), "pruned": pruned}

@router.delete("/files/{stored_name:path}", dependencies=[Depends(require_admin)])
def delete_file(stored_name: str, store: FileStore = Depends(get_store)):
    try:
        store.delete(stored_name)
    except NotFound:
        raise HTTPException(status_code=404, detail="File not found")
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Delete failed: {e}")
    return {"message": "File deleted successfully"}
