"""
tests/test_storage.py
"""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from blogcms.services import storage as storage_module
from blogcms.services.storage import S3ImageStorage, safe_filename, timestamped_key


@pytest.mark.parametrize(
    "name, expected",
    [
        ("cover.jpg", "cover.jpg"),
        ("my cover (1).png", "my_cover__1_.png"),
        ("../../etc/passwd", "passwd"),
        (".hidden", "hidden"),
        ("", "upload"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


def test_timestamped_key(monkeypatch):
    monkeypatch.setattr(storage_module.time, "time", lambda: 1718000000.5)
    assert timestamped_key("cover.jpg") == "blogs/1718000000500-cover.jpg"


# ───────────────────────── local disk ─────────────────────────────
def test_local_upload_writes_file(image_storage):
    key = image_storage.upload_file(b"pixels", "cover.jpg")

    target = image_storage.root / key
    assert target.read_bytes() == b"pixels"
    assert not target.with_name(target.name + ".part").exists()
    assert image_storage.get_public_url(key) == f"/uploads/{key}"


def test_local_delete(image_storage):
    key = image_storage.upload_file(b"pixels", "cover.jpg")

    assert image_storage.delete_file(key) is True
    assert not (image_storage.root / key).exists()
    assert image_storage.delete_file(key) is False


def test_local_delete_refuses_paths_outside_root(image_storage, tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("keep me")

    assert image_storage.delete_file("../secret.txt") is False
    assert outside.exists()


def test_local_upload_failure_returns_none(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    storage = storage_module.LocalImageStorage(str(blocker))

    assert storage.upload_file(b"pixels", "cover.jpg") is None


# ───────────────────────── S3 ─────────────────────────────────────
@pytest.fixture
def s3_client(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(storage_module.boto3, "client", lambda *args, **kwargs: client)
    return client


def test_s3_upload(s3_client):
    storage = S3ImageStorage("media", "ap-south-1")

    key = storage.upload_file(b"pixels", "cover.jpg", "image/jpeg")

    assert key.startswith("blogs/")
    s3_client.put_object.assert_called_once_with(
        Bucket="media", Key=key, Body=b"pixels", ContentType="image/jpeg"
    )
    assert storage.get_public_url(key) == f"https://media.s3.ap-south-1.amazonaws.com/{key}"


def test_s3_errors_are_reported_not_raised(s3_client):
    error = ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
    s3_client.put_object.side_effect = error
    s3_client.delete_object.side_effect = error
    storage = S3ImageStorage("media", "ap-south-1", base_url="https://cdn.example.com")

    assert storage.upload_file(b"pixels", "cover.jpg") is None
    assert storage.delete_file("blogs/1-cover.jpg") is False
    assert storage.get_public_url("blogs/1-cover.jpg") == "https://cdn.example.com/blogs/1-cover.jpg"
