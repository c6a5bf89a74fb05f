"""Filesystem storage backend.

Objects live under ``<root>/<owner_id>/<generated_name>`` and the locator is
that path relative to the root. Signed URLs point back at this API
(``/files/local/<token>``); the token is a short-lived JWT naming the locator,
and the serving route still checks that the caller owns the file. Local links
are read-only: uploads always go through the API.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from jose import JWTError, jwt

from taskdock.core.errors import NotFoundError, StorageUnavailableError
from taskdock.storage.base import StorageAdapter, StoredObject, generate_name

logger = logging.getLogger(__name__)

TOKEN_TYPE = "file"


class LocalStorage(StorageAdapter):
    name = "local"

    def __init__(self, root, base_url: str, signing_secret: str, default_ttl: int = 900):
        super().__init__(default_ttl)
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.signing_secret = signing_secret

    def _path(self, locator: str) -> Path:
        path = (self.root / locator).resolve()
        if self.root not in path.parents:
            # locators come from our own records, anything else is a bug
            raise StorageUnavailableError(f"Locator outside storage root: {locator!r}")
        return path

    def put(self, content: bytes, original_name: str, mime_type: str, owner_id) -> StoredObject:
        generated_name = generate_name(original_name)
        locator = f"{owner_id}/{generated_name}"
        path = self._path(locator)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise StorageUnavailableError(f"Local write failed for {locator}: {e}") from e

        logger.debug("Stored %d bytes at %s", len(content), locator)
        return StoredObject(generated_name=generated_name, locator=locator)

    def get(self, locator: str) -> bytes:
        path = self._path(locator)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError("File not found")
        except OSError as e:
            raise StorageUnavailableError(f"Local read failed for {locator}: {e}") from e

    def delete(self, locator: str) -> None:
        path = self._path(locator)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Local delete failed for {locator}: {e}") from e

    def sign(self, locator: str, mode: str = "read", ttl: Optional[int] = None) -> str:
        self._check_mode(mode)
        if mode != "read":
            raise ValueError("Local storage only issues read links")
        ttl = ttl or self.default_ttl
        payload = {
            "locator": locator,
            "mode": mode,
            "type": TOKEN_TYPE,
            "exp": datetime.utcnow() + timedelta(seconds=ttl),
        }
        token = jwt.encode(payload, self.signing_secret, algorithm="HS256")
        return f"{self.base_url}/files/local/{token}"

    def verify(self, token: str, mode: str = "read") -> Optional[str]:
        """Return the locator carried by a valid token, None if invalid or expired."""
        try:
            payload = jwt.decode(token, self.signing_secret, algorithms=["HS256"])
        except JWTError:
            return None
        if payload.get("type") != TOKEN_TYPE or payload.get("mode") != mode:
            return None
        return payload.get("locator")
