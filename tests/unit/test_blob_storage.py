"""Tests for upload validation and the blob storage backends."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from constellation.core.config import BlobConfig
from constellation.exceptions import BlobStorageError, ValidationFailedError
from constellation.storage import IBlobStorage, MemoryBlobStorage, S3BlobStorage, create_blob_storage, validate_upload
from constellation.storage.blob import object_key


class TestValidateUpload:
    def test_accepts_pdf(self) -> None:
        validate_upload(1024, "application/pdf")

    def test_rejects_oversized(self) -> None:
        with pytest.raises(ValidationFailedError, match="maximum size of 10 MB"):
            validate_upload(10 * 1024 * 1024 + 1, "application/pdf")

    def test_custom_cap(self) -> None:
        with pytest.raises(ValidationFailedError, match="0.5 MB"):
            validate_upload(600 * 1024, "text/plain", max_bytes=512 * 1024)

    @pytest.mark.parametrize("mime", ["application/x-msdownload", None])
    def test_rejects_unlisted_types(self, mime: str | None) -> None:
        with pytest.raises(ValidationFailedError, match="is not allowed"):
            validate_upload(10, mime)


class TestObjectKey:
    def test_layout(self) -> None:
        key = object_key("documents/", "deals/d1", "Business Case.pdf")
        assert key.startswith("documents/deals/d1/Business Case-")
        assert key.endswith(".pdf")

    def test_strips_directories(self) -> None:
        key = object_key("documents/", "deals/d1", "..\\..\\evil.txt")
        assert key.startswith("documents/deals/d1/evil-")

    def test_keys_do_not_collide(self) -> None:
        assert object_key("p/", "f", "a.pdf") != object_key("p/", "f", "a.pdf")


class TestMemoryBlobStorage:
    def test_upload_get_delete(self) -> None:
        blobs = MemoryBlobStorage()
        url = blobs.upload("memo.pdf", b"%PDF", "application/pdf", folder="deals/d1")
        assert url.startswith("memory://documents/deals/d1/memo-")
        assert blobs.get(url) == b"%PDF"
        blobs.delete(url)
        assert blobs.get(url) is None

    def test_delete_foreign_url(self) -> None:
        with pytest.raises(BlobStorageError):
            MemoryBlobStorage().delete("https://elsewhere/x.pdf")

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryBlobStorage(), IBlobStorage)


class TestS3BlobStorage:
    def test_upload_returns_public_url(self) -> None:
        client = MagicMock()
        blobs = S3BlobStorage(bucket="docs", public_base_url="https://cdn.example.com/", client=client)
        url = blobs.upload("memo.pdf", b"%PDF", "application/pdf", folder="deals/d1")
        key = client.put_object.call_args.kwargs["Key"]
        assert url == f"https://cdn.example.com/{key}"
        assert client.put_object.call_args.kwargs["ContentType"] == "application/pdf"

    def test_default_base_url(self) -> None:
        client = MagicMock()
        blobs = S3BlobStorage(bucket="docs", region="ap-southeast-2", client=client)
        url = blobs.upload("a.txt", b"x", "text/plain", folder="f")
        assert url.startswith("https://docs.s3.ap-southeast-2.amazonaws.com/documents/f/a-")

    def test_delete_by_url(self) -> None:
        client = MagicMock()
        blobs = S3BlobStorage(bucket="docs", public_base_url="https://cdn.example.com", client=client)
        blobs.delete("https://cdn.example.com/documents/f/a-1.txt")
        client.delete_object.assert_called_once_with(Bucket="docs", Key="documents/f/a-1.txt")

    def test_upload_failure(self) -> None:
        client = MagicMock()
        client.put_object.side_effect = ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        blobs = S3BlobStorage(bucket="docs", client=client)
        with pytest.raises(BlobStorageError, match="Upload failed"):
            blobs.upload("a.txt", b"x", "text/plain", folder="f")

    def test_delete_foreign_url(self) -> None:
        blobs = S3BlobStorage(bucket="docs", public_base_url="https://cdn.example.com", client=MagicMock())
        with pytest.raises(BlobStorageError):
            blobs.delete("https://other.example.com/x")


class TestCreateBlobStorage:
    def test_memory_default(self) -> None:
        assert isinstance(create_blob_storage(BlobConfig(backend="memory")), MemoryBlobStorage)
