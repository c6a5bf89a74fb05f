from fastapi import APIRouter, Depends
from taskdock.core.deps import get_storage
from taskdock.storage import StorageAdapter

router = APIRouter(tags=["health"])

@router.get("/z")
def healthz(storage: StorageAdapter = Depends(get_storage)):
    # liveness only, does not call the storage backend
    return {"status": "ok", "storage": storage.name}
