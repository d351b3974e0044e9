from __future__ import annotations
"""Data models for bucket configuration and listings."""
from dataclasses import dataclass, field
from datetime import datetime
import os
from typing import Optional

from .errors import ConfigurationError
from .paths import parse_bucket_prefix
from .urls import parse_bucket_host_name


@dataclass(frozen=True)
class BucketConfig:
    """Immutable connection details for a single bucket.

    Use :meth:`create` to build a normalized instance; the host name and key
    prefix stored here are expected to be normalized already.
    """

    bucket_name: str
    bucket_host_name: str
    bucket_prefix: str = ""
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint_url: Optional[str] = None

    @classmethod
    def create(
        cls,
        *,
        bucket_name: str,
        bucket_host_name: str,
        bucket_prefix: str | None = "",
        region: str | None = "",
        access_key: str | None = "",
        secret_key: str | None = "",
        endpoint_url: str | None = None,
    ) -> BucketConfig:
        """Validate and normalize configuration values.

        Raises:
            ConfigurationError: when the bucket name or host name is empty.
        """

        if not bucket_name:
            raise ConfigurationError("bucket_name is required")
        if not bucket_host_name:
            raise ConfigurationError("bucket_host_name is required")
        return cls(
            bucket_name=bucket_name,
            bucket_host_name=parse_bucket_host_name(bucket_host_name),
            bucket_prefix=parse_bucket_prefix(bucket_prefix),
            region=region or "",
            access_key=access_key or "",
            secret_key=secret_key or "",
            endpoint_url=endpoint_url or None,
        )

    @classmethod
    def from_env(cls) -> BucketConfig:
        """Load configuration from environment variables."""

        return cls.create(
            bucket_name=os.getenv("S3FS_BUCKET_NAME", ""),
            bucket_host_name=os.getenv("S3FS_BUCKET_HOST_NAME", ""),
            bucket_prefix=os.getenv("S3FS_BUCKET_PREFIX", ""),
            region=os.getenv("AWS_DEFAULT_REGION", ""),
            access_key=os.getenv("AWS_ACCESS_KEY_ID", ""),
            secret_key=os.getenv("AWS_SECRET_ACCESS_KEY", ""),
            endpoint_url=os.getenv("S3FS_ENDPOINT_URL"),
        )


@dataclass
class ListingPage:
    """Represents a single page returned by a list call."""

    number: int
    keys: list[str] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_marker: Optional[str] = None


@dataclass
class ObjectDetails:
    """Metadata about a single stored object."""

    key: str
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
