import uuid
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File as FastAPIFile, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from taskdock.core.config import settings
from taskdock.core.database import get_db
from taskdock.core.deps import get_current_user, get_storage
from taskdock.models.user import User
from taskdock.schemas.file import DownloadLinkResponse, FileListResponse, FileResponse
from taskdock.services import file_service
from taskdock.services.ownership import get_owned_file
from taskdock.storage import StorageAdapter

router = APIRouter(prefix="/files", tags=["files"])


def content_disposition(filename: str) -> str:
    # ASCII fallback plus RFC 5987 form for the user's original name
    fallback = "".join(c if 32 <= ord(c) < 127 and c not in '"\\' else "_" for c in filename)
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{encoded}"


@router.post("/upload", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = FastAPIFile(...),
    task_id: Optional[uuid.UUID] = Query(None, alias="taskId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageAdapter = Depends(get_storage),
):
    # sync route: runs in the threadpool, storage.put may block on the network
    # one byte past the ceiling is enough to know it is too large
    content = file.file.read(settings.MAX_UPLOAD_BYTES + 1)

    return file_service.upload_file(
        db,
        storage,
        current_user.id,
        content,
        file.filename,
        file.content_type,
        task_id=task_id,
    )


@router.get("", response_model=FileListResponse)
def list_files(
    task_id: Optional[uuid.UUID] = Query(None, alias="taskId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    files = file_service.list_files(db, current_user.id, task_id)
    return FileListResponse(files=[FileResponse.model_validate(f) for f in files])


@router.get("/local/{token}")
def serve_local_file(
    token: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageAdapter = Depends(get_storage),
):
    file, content = file_service.read_local_file(db, storage, token, current_user.id)
    return Response(
        content=content,
        media_type=file.mime_type,
        headers={"Content-Disposition": content_disposition(file.original_name)},
    )


@router.get("/{file_id}", response_model=FileResponse)
def get_file(
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return get_owned_file(db, file_id, current_user.id)


@router.get("/{file_id}/download", response_model=DownloadLinkResponse)
def download_link(
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageAdapter = Depends(get_storage),
):
    file = get_owned_file(db, file_id, current_user.id)
    return file_service.get_download_link(storage, file)


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageAdapter = Depends(get_storage),
):
    file = get_owned_file(db, file_id, current_user.id)
    file_service.delete_file(db, storage, file)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{file_id}/attach/{task_id}", response_model=FileResponse)
def attach_file(
    file_id: uuid.UUID,
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return file_service.attach_file(db, file_id, task_id, current_user.id)


@router.put("/{file_id}/detach", response_model=FileResponse)
def detach_file(
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return file_service.detach_file(db, file_id, current_user.id)
