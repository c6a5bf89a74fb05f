"""S3 object storage backend (boto3).

Keys follow ``users/<owner_id>/files/<generated_name>``. Download links are
presigned by boto3 and never cached: each call issues a fresh URL.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from taskdock.core.errors import NotFoundError, StorageUnavailableError
from taskdock.storage.base import StorageAdapter, StoredObject, generate_name

logger = logging.getLogger(__name__)

SIGN_OPERATIONS = {"read": "get_object", "write": "put_object"}


def build_s3_client(region: Optional[str] = None, endpoint_url: Optional[str] = None):
    # credentials come from the standard AWS chain (env, profile, instance role)
    return boto3.client("s3", region_name=region, endpoint_url=endpoint_url)


class S3Storage(StorageAdapter):
    name = "s3"

    def __init__(self, bucket: Optional[str], client=None, default_ttl: int = 900):
        super().__init__(default_ttl)
        self.bucket = bucket
        self.client = client

    def _require_bucket(self) -> str:
        if not self.bucket or self.client is None:
            raise StorageUnavailableError("S3 storage selected but no bucket is configured")
        return self.bucket

    def put(self, content: bytes, original_name: str, mime_type: str, owner_id) -> StoredObject:
        bucket = self._require_bucket()
        generated_name = generate_name(original_name)
        key = f"users/{owner_id}/files/{generated_name}"
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=content,
                ContentType=mime_type or "application/octet-stream",
                Metadata={
                    # S3 metadata must be ASCII
                    "original-name": original_name.encode("ascii", "replace").decode(),
                    "uploaded-by": str(owner_id),
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"S3 put failed for {key}: {e}") from e

        return StoredObject(generated_name=generated_name, locator=key)

    def get(self, locator: str) -> bytes:
        bucket = self._require_bucket()
        try:
            obj = self.client.get_object(Bucket=bucket, Key=locator)
            return obj["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("File not found")
            raise StorageUnavailableError(f"S3 get failed for {locator}: {e}") from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 get failed for {locator}: {e}") from e

    def delete(self, locator: str) -> None:
        bucket = self._require_bucket()
        try:
            self.client.delete_object(Bucket=bucket, Key=locator)
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"S3 delete failed for {locator}: {e}") from e

    def sign(self, locator: str, mode: str = "read", ttl: Optional[int] = None) -> str:
        self._check_mode(mode)
        bucket = self._require_bucket()
        try:
            return self.client.generate_presigned_url(
                SIGN_OPERATIONS[mode],
                Params={"Bucket": bucket, "Key": locator},
                ExpiresIn=ttl or self.default_ttl,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"S3 presign failed for {locator}: {e}") from e
