import uuid
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict


class FileTaskSummary(BaseModel):
    id: uuid.UUID
    title: str

    model_config = ConfigDict(from_attributes=True)


class FileResponse(BaseModel):
    id: uuid.UUID
    filename: str
    original_name: str
    mime_type: str
    size: int
    task_id: Optional[uuid.UUID]
    task: Optional[FileTaskSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FileListResponse(BaseModel):
    files: List[FileResponse]


class DownloadLinkResponse(BaseModel):
    download_url: str
    filename: str
    mime_type: str
    size: int
    expires_in: int
