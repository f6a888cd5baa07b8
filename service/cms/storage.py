"""
Storage abstraction for Supabase Storage (S3-compatible) and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from shared.image_url import public_object_url


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload_bytes(
        self, bucket: str, path: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        ...

    def get_bytes(self, bucket: str, path: str) -> bytes:
        ...

    def delete(self, bucket: str, paths: list[str]) -> None:
        ...

    def list(self, bucket: str, prefix: str = "") -> list[dict]:
        ...

    def public_url(self, bucket: str, path: str) -> str:
        ...

    def presign_get(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        ...

    def presign_put(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        ...

    def ensure_bucket(self, bucket: str) -> bool:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test"
    stored_objects: dict = field(default_factory=dict)
    buckets: set = field(default_factory=set)

    def upload_bytes(
        self, bucket: str, path: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        self.buckets.add(bucket)
        self.stored_objects[(bucket, path)] = {
            "data": bytes(data),
            "content_type": content_type,
        }

    def get_bytes(self, bucket: str, path: str) -> bytes:
        stored = self.stored_objects.get((bucket, path))
        if stored is None:
            raise FileNotFoundError(f"{bucket}/{path}")
        return stored["data"]

    def delete(self, bucket: str, paths: list[str]) -> None:
        for path in paths:
            self.stored_objects.pop((bucket, path), None)

    def list(self, bucket: str, prefix: str = "") -> list[dict]:
        return [
            {"name": path, "size": len(stored["data"]), "last_modified": None}
            for (stored_bucket, path), stored in sorted(self.stored_objects.items())
            if stored_bucket == bucket and path.startswith(prefix)
        ]

    def public_url(self, bucket: str, path: str) -> str:
        return public_object_url(self.base_url, bucket, path)

    def presign_get(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{bucket}/{path}?op=get&expires={expires_in}"

    def presign_put(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{bucket}/{path}?op=put&expires={expires_in}"

    def ensure_bucket(self, bucket: str) -> bool:
        if bucket in self.buckets:
            return False
        self.buckets.add(bucket)
        return True


@dataclass
class SupabaseStorageClient:
    """
    S3-compatible client for Supabase Storage. Public URLs are built from the
    project URL rather than the S3 endpoint.
    """

    endpoint: str
    region: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str

    def __post_init__(self):
        # Supabase's S3 gateway only supports path-style addressing.
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def upload_bytes(
        self, bucket: str, path: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        self._client.put_object(
            Bucket=bucket,
            Key=path,
            Body=data,
            ContentType=content_type,
            CacheControl="max-age=3600",
        )

    def get_bytes(self, bucket: str, path: str) -> bytes:
        response = self._client.get_object(Bucket=bucket, Key=path)
        return response["Body"].read()

    def delete(self, bucket: str, paths: list[str]) -> None:
        if not paths:
            return
        self._client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": path} for path in paths], "Quiet": True},
        )

    def list(self, bucket: str, prefix: str = "") -> list[dict]:
        paginator = self._client.get_paginator("list_objects_v2")
        objects = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for item in page.get("Contents", []):
                last_modified = item.get("LastModified")
                objects.append(
                    {
                        "name": item["Key"],
                        "size": item.get("Size", 0),
                        "last_modified": last_modified.isoformat() if last_modified else None,
                    }
                )
        return objects

    def public_url(self, bucket: str, path: str) -> str:
        return public_object_url(self.public_base_url, bucket, path)

    def presign_get(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": bucket, "Key": path},
            ExpiresIn=expires_in,
        )

    def presign_put(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        # We include a dummy content type so uploads work in browsers by default.
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={
                "Bucket": bucket,
                "Key": path,
                "ContentType": "application/octet-stream",
            },
            ExpiresIn=expires_in,
        )

    def ensure_bucket(self, bucket: str) -> bool:
        """Create ``bucket`` when missing; True when it was created."""
        try:
            self._client.head_bucket(Bucket=bucket)
            return False
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise
        self._client.create_bucket(Bucket=bucket)
        return True
