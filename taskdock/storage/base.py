"""Storage adapter interface shared by the local and S3 backends."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

SIGN_MODES = ("read", "write")


@dataclass(frozen=True)
class StoredObject:
    generated_name: str
    locator: str


def generate_name(original_name: str) -> str:
    """Random collision-resistant name keeping the original extension.

    Content hashes are not used: two owners uploading the same bytes must get
    independent objects that can be deleted separately.
    """
    suffix = PurePosixPath(original_name.replace("\\", "/")).suffix.lower()
    return f"{uuid.uuid4().hex}{suffix}"


class StorageAdapter(ABC):
    name = "abstract"

    def __init__(self, default_ttl: int = 900):
        self.default_ttl = default_ttl

    @abstractmethod
    def put(self, content: bytes, original_name: str, mime_type: str, owner_id) -> StoredObject:
        """Write content under an owner-scoped location."""

    @abstractmethod
    def get(self, locator: str) -> bytes:
        """Read back the content stored at locator."""

    @abstractmethod
    def delete(self, locator: str) -> None:
        """Remove the object; deleting a missing object is not an error."""

    @abstractmethod
    def sign(self, locator: str, mode: str = "read", ttl: Optional[int] = None) -> str:
        """Return a time-limited URL giving access to the object."""

    def _check_mode(self, mode: str) -> None:
        if mode not in SIGN_MODES:
            raise ValueError(f"Unsupported sign mode: {mode}")
