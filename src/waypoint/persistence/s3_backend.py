"""S3 artifact storage backend implementing IFileStore."""

from __future__ import annotations

import posixpath
from typing import Any

import boto3
from botocore.exceptions import ClientError

from waypoint.core.config import S3Config
from waypoint.core.exceptions import ArtifactStoreError

MISSING_KEY_CODES = frozenset({"NoSuchKey", "404"})


class S3FileStore:
    """IFileStore for saved CSV builder runs.

    Paths are relative to ``prefix``. Objects are written with server-side
    encryption when configured, and CSVs carry a Content-Disposition so a
    browser download keeps the file name.
    """

    def __init__(self, bucket: str, client: Any = None, *, region: str = "us-east-1",
                 endpoint_url: str | None = None, prefix: str = "",
                 server_side_encryption: str | None = None) -> None:
        self._bucket = bucket
        self._prefix = prefix.strip("/")
        self._sse = server_side_encryption
        if client is None:
            kwargs: dict = {"region_name": region}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)
        self._client = client

    @classmethod
    def from_config(cls, config: S3Config) -> S3FileStore:
        return cls(
            config.bucket,
            region=config.region,
            endpoint_url=config.endpoint_url,
            prefix=config.prefix,
            server_side_encryption=config.server_side_encryption,
        )

    def _key(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self._prefix}/{path}" if self._prefix else path

    def _path(self, key: str) -> str:
        return key[len(self._prefix) + 1:] if self._prefix else key

    def read(self, path: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=self._key(path))
            return resp["Body"].read()
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                raise ArtifactStoreError(f"No artifact at {path!r}") from exc
            raise ArtifactStoreError(f"S3 read failed for {path!r}: {exc}") from exc

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._key(path),
            "Body": data,
            "ContentType": content_type,
        }
        if content_type.startswith("text/csv"):
            params["ContentDisposition"] = f'attachment; filename="{posixpath.basename(path)}"'
        if self._sse:
            params["ServerSideEncryption"] = self._sse
        try:
            self._client.put_object(**params)
        except ClientError as exc:
            raise ArtifactStoreError(f"S3 write failed for {path!r}: {exc}") from exc
        return path

    def list_files(self, prefix: str) -> list[str]:
        """Paths under ``prefix``, sorted."""
        try:
            paths: list[str] = []
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=self._key(prefix)):
                paths.extend(self._path(obj["Key"]) for obj in page.get("Contents", []))
            return sorted(paths)
        except ClientError as exc:
            raise ArtifactStoreError(f"S3 list failed for prefix={prefix!r}: {exc}") from exc
