"""Tests — file storage backends."""

import pytest
from botocore.exceptions import ClientError

from buildtrack.core.exceptions import StorageError
from buildtrack.services.storage import LocalFileStorage, S3FileStorage, storage_from_config


class FakeS3:
    def __init__(self, fail=False):
        self.objects = {}
        self.fail = fail

    def _maybe_fail(self, op):
        if self.fail:
            raise ClientError({"Error": {"Code": "503", "Message": "Slow Down"}}, op)

    def put_object(self, Bucket, Key, Body, ContentType):
        self._maybe_fail("PutObject")
        self.objects[(Bucket, Key)] = Body

    def get_object(self, Bucket, Key):
        import io

        self._maybe_fail("GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def delete_object(self, Bucket, Key):
        self._maybe_fail("DeleteObject")
        self.objects.pop((Bucket, Key), None)


class TestLocalFileStorage:
    def test_round_trip(self, tmp_path):
        store = LocalFileStorage(str(tmp_path))
        url = store.upload("1/general/1_a.txt", b"hello")
        assert url == "/files/1/general/1_a.txt"
        assert store.read("1/general/1_a.txt") == b"hello"
        store.delete("1/general/1_a.txt")
        with pytest.raises(StorageError):
            store.read("1/general/1_a.txt")

    def test_delete_missing_is_quiet(self, tmp_path):
        LocalFileStorage(str(tmp_path)).delete("nope/none.txt")

    def test_path_escape_rejected(self, tmp_path):
        with pytest.raises(StorageError):
            LocalFileStorage(str(tmp_path)).upload("../outside.txt", b"x")


class TestS3FileStorage:
    def test_put_get_delete(self):
        fake = FakeS3()
        store = S3FileStorage("project-files", endpoint_url="minio:9000", client=fake)
        url = store.upload("1/rfis/2/3_a.pdf", b"pdf", "application/pdf")
        assert url == "http://minio:9000/project-files/1/rfis/2/3_a.pdf"
        assert store.read("1/rfis/2/3_a.pdf") == b"pdf"
        store.delete("1/rfis/2/3_a.pdf")
        assert fake.objects == {}

    def test_aws_url(self):
        store = S3FileStorage("bucket", region="eu-west-1", client=FakeS3())
        assert store.public_url("k") == "https://bucket.s3.eu-west-1.amazonaws.com/k"

    def test_client_errors_become_storage_errors(self):
        store = S3FileStorage("bucket", client=FakeS3(fail=True))
        with pytest.raises(StorageError):
            store.upload("k", b"x")
        with pytest.raises(StorageError):
            store.delete("k")


def test_storage_from_config(tmp_path):
    store = storage_from_config({"STORAGE_BACKEND": "local", "STORAGE_LOCAL_ROOT": str(tmp_path)})
    assert isinstance(store, LocalFileStorage)
    store = storage_from_config({"STORAGE_BACKEND": "s3", "S3_BUCKET": "b"})
    assert isinstance(store, S3FileStorage)
    with pytest.raises(ValueError):
        storage_from_config({"STORAGE_BACKEND": "ftp"})
