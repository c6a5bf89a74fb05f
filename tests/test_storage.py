import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from fastapi.testclient import TestClient

from taskdock.core.deps import get_storage
from taskdock.core.errors import NotFoundError, StorageUnavailableError
from taskdock.main import app
from taskdock.storage import LocalStorage, S3Storage, build_storage, generate_name


def make_settings(**overrides):
    values = dict(
        STORAGE_BACKEND="local",
        UPLOAD_DIR="./uploads",
        PUBLIC_BASE_URL="http://testserver",
        STORAGE_SIGNING_SECRET="secret",
        S3_BUCKET=None,
        S3_REGION=None,
        S3_ENDPOINT_URL=None,
        SIGNED_URL_TTL_SECONDS=900,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


# ========== NAMING ==========
def test_generate_name_keeps_extension_and_is_unique():
    names = {generate_name("Quarterly Report.PDF") for _ in range(100)}
    assert len(names) == 100
    assert all(name.endswith(".pdf") for name in names)
    assert generate_name("README").isalnum()


# ========== FACTORY ==========
def test_build_storage_local(tmp_path):
    storage = build_storage(make_settings(UPLOAD_DIR=str(tmp_path)))
    assert isinstance(storage, LocalStorage)
    assert storage.default_ttl == 900


def test_build_storage_s3_without_bucket_fails_on_use():
    storage = build_storage(make_settings(STORAGE_BACKEND="s3"))
    assert isinstance(storage, S3Storage)

    with pytest.raises(StorageUnavailableError):
        storage.put(b"data", "a.txt", "text/plain", uuid.uuid4())
    with pytest.raises(StorageUnavailableError):
        storage.sign("users/x/files/a.txt")


def test_build_storage_unknown_backend():
    with pytest.raises(ValueError):
        build_storage(make_settings(STORAGE_BACKEND="ftp"))


# ========== LOCAL ==========
@pytest.fixture
def local(tmp_path):
    return LocalStorage(tmp_path, "http://testserver", "secret")


def test_local_put_get_delete(local, tmp_path):
    owner = uuid.uuid4()
    stored = local.put(b"hello", "notes.txt", "text/plain", owner)

    assert stored.locator == f"{owner}/{stored.generated_name}"
    assert (tmp_path / str(owner) / stored.generated_name).read_bytes() == b"hello"
    assert local.get(stored.locator) == b"hello"

    local.delete(stored.locator)
    assert not (tmp_path / str(owner) / stored.generated_name).exists()
    # already gone: still fine
    local.delete(stored.locator)

    with pytest.raises(NotFoundError):
        local.get(stored.locator)


def test_local_rejects_locator_outside_root(local):
    with pytest.raises(StorageUnavailableError):
        local.get("../../etc/passwd")


def test_local_sign_and_verify(local):
    url = local.sign("owner/file.pdf")
    assert url.startswith("http://testserver/files/local/")

    token = url.rsplit("/", 1)[1]
    assert local.verify(token) == "owner/file.pdf"
    assert local.verify(token, mode="write") is None
    assert local.verify(token + "x") is None

    other = LocalStorage(local.root, "http://testserver", "another-secret")
    assert other.verify(token) is None


def test_local_sign_expired(local):
    token = local.sign("owner/file.pdf", ttl=-1).rsplit("/", 1)[1]
    assert local.verify(token) is None


def test_local_sign_rejects_unknown_mode(local):
    with pytest.raises(ValueError):
        local.sign("owner/file.pdf", mode="admin")


def test_local_links_are_read_only(local):
    with pytest.raises(ValueError):
        local.sign("owner/file.pdf", mode="write")


# ========== S3 ==========
def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "Operation")


def test_s3_put_uses_owner_prefix():
    client = MagicMock()
    storage = S3Storage("bucket", client)
    owner = uuid.uuid4()

    stored = storage.put(b"data", "photo.PNG", "image/png", owner)

    assert stored.locator == f"users/{owner}/files/{stored.generated_name}"
    assert stored.generated_name.endswith(".png")
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "bucket"
    assert kwargs["Key"] == stored.locator
    assert kwargs["ContentType"] == "image/png"
    assert kwargs["Metadata"]["uploaded-by"] == str(owner)


def test_s3_get_and_delete():
    client = MagicMock()
    client.get_object.return_value = {"Body": MagicMock(read=MagicMock(return_value=b"bytes"))}
    storage = S3Storage("bucket", client)

    assert storage.get("users/u/files/a.txt") == b"bytes"
    storage.delete("users/u/files/a.txt")
    client.delete_object.assert_called_once_with(Bucket="bucket", Key="users/u/files/a.txt")


def test_s3_missing_key_is_not_found():
    client = MagicMock()
    client.get_object.side_effect = client_error("NoSuchKey")
    with pytest.raises(NotFoundError):
        S3Storage("bucket", client).get("users/u/files/a.txt")


def test_s3_backend_errors_become_unavailable():
    client = MagicMock()
    client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://s3")
    client.delete_object.side_effect = client_error("AccessDenied")
    storage = S3Storage("bucket", client)

    with pytest.raises(StorageUnavailableError):
        storage.put(b"data", "a.txt", "text/plain", uuid.uuid4())
    with pytest.raises(StorageUnavailableError):
        storage.delete("users/u/files/a.txt")


def test_s3_sign_is_fresh_each_call():
    client = MagicMock()
    client.generate_presigned_url.side_effect = ["https://s3/one", "https://s3/two"]
    storage = S3Storage("bucket", client)

    assert storage.sign("users/u/files/a.txt") == "https://s3/one"
    assert storage.sign("users/u/files/a.txt", mode="write", ttl=60) == "https://s3/two"

    first, second = client.generate_presigned_url.call_args_list
    assert first.args == ("get_object",)
    assert first.kwargs == {"Params": {"Bucket": "bucket", "Key": "users/u/files/a.txt"}, "ExpiresIn": 900}
    assert second.args == ("put_object",)
    assert second.kwargs["ExpiresIn"] == 60


# ========== LOCAL SERVING ROUTE ==========
@pytest.fixture
def local_client(local):
    app.dependency_overrides[get_storage] = lambda: local
    yield TestClient(app)
    app.dependency_overrides.pop(get_storage, None)


def test_local_download_roundtrip(local_client, headers):
    response = local_client.post(
        "/files/upload",
        headers=headers,
        files={"file": ("Q3 report.txt", b"hello world", "text/plain")},
    )
    assert response.status_code == 201
    file_id = response.json()["id"]

    link = local_client.get(f"/files/{file_id}/download", headers=headers).json()
    path = link["download_url"].replace("http://testserver", "")

    response = local_client.get(path, headers=headers)
    assert response.status_code == 200
    assert response.content == b"hello world"
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"Q3 report.txt\"; filename*=utf-8''Q3%20report.txt"
    )


def test_local_download_checks_ownership_like_signed_link(local_client, headers, other_headers):
    """The local link is not a bearer capability: another user gets the same 404
    as when asking for the signed link directly."""
    file_id = local_client.post(
        "/files/upload",
        headers=headers,
        files={"file": ("secret.txt", b"secret", "text/plain")},
    ).json()["id"]
    link = local_client.get(f"/files/{file_id}/download", headers=headers).json()
    path = link["download_url"].replace("http://testserver", "")

    served = local_client.get(path, headers=other_headers)
    signed = local_client.get(f"/files/{file_id}/download", headers=other_headers)

    assert served.status_code == signed.status_code == 404
    assert served.json() == signed.json() == {"detail": "File not found"}
    assert local_client.get(path).status_code == 401


def test_local_download_with_bad_token(local_client, headers):
    assert local_client.get("/files/local/not-a-token", headers=headers).status_code == 404


def test_local_route_unavailable_with_other_backend(client, headers, storage):
    token = LocalStorage("/tmp", "http://testserver", "secret").sign("x/y.txt").rsplit("/", 1)[1]
    assert client.get(f"/files/local/{token}", headers=headers).status_code == 404


def test_content_disposition_keeps_original_name():
    from taskdock.routers.files import content_disposition

    header = content_disposition('été "final".pdf')
    assert header == (
        "attachment; filename=\"_t_ _final_.pdf\"; "
        "filename*=utf-8''%C3%A9t%C3%A9%20%22final%22.pdf"
    )
