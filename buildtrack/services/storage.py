"""
File storage backends for attachments and floor plans.

Two backends share one small interface (``upload``, ``read``, ``delete``,
``public_url``):

    LocalFileStorage  files under a directory (default: ``instance/``)
    S3FileStorage     AWS S3 or MinIO through boto3

The app factory builds one from config and stores it in
``app.extensions["file_storage"]``; services receive it as a parameter.
Every backend failure surfaces as ``StorageError``.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime, timezone

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from buildtrack.core.exceptions import StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def safe_file_name(name: str) -> str:
    """Replace anything outside ``[a-zA-Z0-9.-]`` with ``_``."""
    cleaned = _UNSAFE_CHARS.sub("_", os.path.basename(name or ""))
    return cleaned or "file"


def build_storage_path(project_id, folder, file_name, owner_id=None, now=None) -> str:
    """``<project_id>/<folder>[/<owner_id>]/<timestamp>_<safe_name>``.

    The timestamp is epoch milliseconds so two uploads of the same name
    never collide.
    """
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    parts = [str(project_id), folder]
    if owner_id is not None:
        parts.append(str(owner_id))
    parts.append(f"{stamp}_{safe_file_name(file_name)}")
    return "/".join(parts)


class FileStorage:
    """Interface every backend implements."""

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store ``data`` at ``path`` and return its public URL."""
        raise NotImplementedError

    def read(self, path: str) -> bytes:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    def public_url(self, path: str) -> str:
        raise NotImplementedError


# ═══════════════════════════════════════════════════════════════════════════
#  Local directory
# ═══════════════════════════════════════════════════════════════════════════

class LocalFileStorage(FileStorage):
    def __init__(self, root: str, base_url: str = "/files"):
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip("/")

    def _full_path(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, path))
        if not full.startswith(self.root + os.sep):
            raise StorageError("Storage path escapes the storage root", path=path)
        return full

    def upload(self, path, data, content_type=None):
        full = self._full_path(path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise StorageError(f"Upload failed: {exc}", path=path) from exc
        return self.public_url(path)

    def read(self, path):
        try:
            with open(self._full_path(path), "rb") as fh:
                return fh.read()
        except OSError as exc:
            raise StorageError(f"Read failed: {exc}", path=path) from exc

    def delete(self, path):
        try:
            os.remove(self._full_path(path))
        except FileNotFoundError:
            logger.info("Storage delete: %s already absent", path)
        except OSError as exc:
            raise StorageError(f"Delete failed: {exc}", path=path) from exc

    def public_url(self, path):
        return f"{self.base_url}/{path}"


# ═══════════════════════════════════════════════════════════════════════════
#  S3 / MinIO
# ═══════════════════════════════════════════════════════════════════════════

def _normalize_endpoint(url):
    """Ensure endpoints include a scheme so boto3 accepts them."""
    if not url:
        return url
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"http://{url}"


class S3FileStorage(FileStorage):
    """Bucket-backed storage. ``endpoint_url`` set ⇒ MinIO / S3-compatible."""

    def __init__(self, bucket: str, endpoint_url: str | None = None,
                 region: str = "us-east-1", client=None):
        self.bucket = bucket
        self.endpoint_url = _normalize_endpoint(endpoint_url)
        self.region = region
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.session.Session(region_name=self.region).client(
                "s3",
                endpoint_url=self.endpoint_url,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def upload(self, path, data, content_type=None):
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload failed: {exc}", path=path) from exc
        return self.public_url(path)

    def read(self, path):
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=path)
            return obj["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Read failed: {exc}", path=path) from exc

    def delete(self, path):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Delete failed: {exc}", path=path) from exc

    def public_url(self, path):
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{path}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{path}"


def storage_from_config(config) -> FileStorage:
    """Build the backend named by ``STORAGE_BACKEND``."""
    backend = (config.get("STORAGE_BACKEND") or "local").lower()
    if backend == "s3":
        logger.info("File storage: S3 bucket=%s endpoint=%s",
                    config.get("S3_BUCKET"), config.get("S3_ENDPOINT_URL") or "aws")
        return S3FileStorage(
            bucket=config["S3_BUCKET"],
            endpoint_url=config.get("S3_ENDPOINT_URL"),
            region=config.get("AWS_REGION", "us-east-1"),
        )
    if backend != "local":
        raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}")
    return LocalFileStorage(
        root=config["STORAGE_LOCAL_ROOT"],
        base_url=config.get("STORAGE_PUBLIC_BASE_URL", "/files"),
    )
