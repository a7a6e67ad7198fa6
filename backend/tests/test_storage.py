"""Tests for the avatar object storage helpers."""

from unittest.mock import MagicMock

import pytest

from services import storage


class FakeS3Error(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.code = code


@pytest.fixture(autouse=True)
def _reset_cache():
    storage.get_minio_client.cache_clear()
    yield
    storage.get_minio_client.cache_clear()


def test_get_minio_client_is_built_once_from_settings(monkeypatch):
    created = []

    def fake_minio(endpoint, access_key, secret_key, secure):
        created.append((endpoint, access_key, secret_key, secure))
        return MagicMock(name="Minio")

    monkeypatch.setattr(storage, "Minio", fake_minio)

    client = storage.get_minio_client()

    assert storage.get_minio_client() is client
    assert created == [
        (
            storage.settings.minio_endpoint,
            storage.settings.minio_access_key,
            storage.settings.minio_secret_key,
            storage.settings.minio_secure,
        )
    ]


def test_ensure_bucket_creates_missing_bucket():
    client = MagicMock()
    client.bucket_exists.return_value = False

    storage.ensure_bucket(client)

    client.make_bucket.assert_called_once_with(storage.settings.minio_bucket)


def test_ensure_bucket_tolerates_concurrent_creation(monkeypatch):
    client = MagicMock()
    client.bucket_exists.return_value = False
    client.make_bucket.side_effect = FakeS3Error("BucketAlreadyOwnedByYou")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    storage.ensure_bucket(client)


def test_upload_object_puts_bytes_with_length_and_type():
    client = MagicMock()
    client.bucket_exists.return_value = True

    storage.upload_object("avatars/abc.jpg", b"jpeg-bytes", "image/jpeg", client)

    client.put_object.assert_called_once()
    args = client.put_object.call_args
    assert args.args[:2] == (storage.settings.minio_bucket, "avatars/abc.jpg")
    assert args.kwargs["length"] == len(b"jpeg-bytes")
    assert args.kwargs["content_type"] == "image/jpeg"
    assert args.kwargs["data"].read() == b"jpeg-bytes"


def test_delete_object_ignores_missing_objects(monkeypatch):
    client = MagicMock()
    client.remove_object.side_effect = FakeS3Error("NoSuchKey")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    storage.delete_object("avatars/missing.jpg", client)

    client.remove_object.assert_called_once_with(
        storage.settings.minio_bucket,
        "avatars/missing.jpg",
    )


def test_delete_object_propagates_other_errors(monkeypatch):
    client = MagicMock()
    client.remove_object.side_effect = FakeS3Error("AccessDenied")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    with pytest.raises(FakeS3Error):
        storage.delete_object("avatars/locked.jpg", client)
