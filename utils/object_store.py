"""S3-compatible object storage for photos, thumbnails and JSON documents."""

import io
import os

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}
_CONFLICT_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict", "409"}


class ObjectNotFoundError(Exception):
    """Raised when an object does not exist in a bucket."""

    def __init__(self, bucket: str, key: str):
        super().__init__(f"Object not found: {bucket}/{key}")
        self.bucket = bucket
        self.key = key


class VersionConflictError(Exception):
    """Raised when a conditional write loses against a concurrent writer."""

    def __init__(self, bucket: str, key: str):
        super().__init__(f"Object changed since it was read: {bucket}/{key}")
        self.bucket = bucket
        self.key = key


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class ObjectStore:
    """S3 (or Cloudflare R2) client addressed by bucket and key."""

    def __init__(
        self,
        region: str | None = None,
        endpoint_url: str | None = None,
        public_url_base: str | None = None,
        timeout: float = 30.0,
        client=None,
    ):
        """
        Initialize object storage client.

        Args:
            region: AWS region (ignored by R2)
            endpoint_url: Custom endpoint, e.g. https://<account>.r2.cloudflarestorage.com
            public_url_base: Public URL base for objects (e.g., https://cdn.example.com)
            timeout: Connect/read timeout in seconds for every call
            client: Pre-built boto3 S3 client (used by tests)

        Credentials come from the standard AWS environment variables or profile.
        """
        self.region = region or os.getenv("AWS_REGION", "us-west-1")
        self.endpoint_url = endpoint_url
        self.public_url_base = public_url_base.rstrip("/") if public_url_base else None

        if client is None:
            client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                config=Config(
                    signature_version="s3v4",
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": 3, "mode": "standard"},
                ),
            )
        self.s3_client = client

    @classmethod
    def from_settings(cls, settings) -> "ObjectStore":
        return cls(
            region=settings.region,
            endpoint_url=settings.endpoint_url,
            public_url_base=settings.public_url_base,
            timeout=settings.http_timeout,
        )

    def get(self, bucket: str, key: str) -> bytes:
        """
        Read an object's bytes.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        data, _ = self.get_versioned(bucket, key)
        return data

    def get_versioned(self, bucket: str, key: str) -> tuple[bytes, str]:
        """
        Read an object's bytes together with its ETag.

        Returns:
            Tuple of (data, etag)

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(bucket, key) from e
            raise
        body = response["Body"]
        try:
            data = body.read()
        finally:
            body.close()
        return data, response.get("ETag", "")

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        if_match: str | None = None,
        if_none_match: bool = False,
    ) -> str:
        """
        Write an object.

        Args:
            bucket: Bucket name
            key: Object key
            data: Bytes to write
            content_type: MIME type of the data
            if_match: Only write if the stored object still has this ETag
            if_none_match: Only write if the object does not exist yet

        Returns:
            ETag of the written object

        Raises:
            VersionConflictError: If a write condition does not hold
        """
        kwargs = {
            "Bucket": bucket,
            "Key": key,
            "Body": io.BytesIO(data),
            "ContentLength": len(data),
            "ContentType": content_type,
        }
        if if_match:
            kwargs["IfMatch"] = if_match
        elif if_none_match:
            kwargs["IfNoneMatch"] = "*"

        try:
            response = self.s3_client.put_object(**kwargs)
        except ClientError as e:
            if _error_code(e) in _CONFLICT_CODES:
                raise VersionConflictError(bucket, key) from e
            raise
        return response.get("ETag", "")

    def delete(self, bucket: str, key: str) -> None:
        """Delete an object. Deleting a missing key is a no-op."""
        try:
            self.s3_client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                raise

    def list(self, bucket: str) -> list[str]:
        """List every key in a bucket, following pagination."""
        keys = []
        paginator = self.s3_client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            for obj in page.get("Contents", []):
                keys.append(obj["Key"])
        return keys

    def public_url(self, bucket: str, key: str) -> str:
        """Public URL of an object."""
        if self.public_url_base:
            return f"{self.public_url_base}/{bucket}/{key}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{key}"
