from __future__ import annotations
"""Filesystem operations on top of an S3 bucket."""
from contextlib import contextmanager
from datetime import datetime, timezone
from fnmatch import fnmatchcase
import io
import logging
from typing import IO, Any, Callable, Iterator, Optional, Union

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import NotFoundError, StorageError, is_not_found
from .listing import ListingAggregator
from .models import BucketConfig, ObjectDetails
from .paths import DELIMITER, PathResolver
from .profiles import BucketProfile
from .settings import AdapterSettings
from .urls import HostnameBuilder

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_ACL = "public-read"


class S3FileSystem:
    """Presents a bucket as a hierarchical filesystem.

    Directories are emulated with key prefixes. Every public method opens its
    own client and closes it before returning, so instances hold no state
    besides their configuration and may be shared between threads.
    """

    def __init__(
        self,
        config: BucketConfig,
        *,
        settings: AdapterSettings | None = None,
        client_factory: Callable[..., object] | None = None,
    ):
        self._config = config
        self._settings = settings or AdapterSettings()
        self._client_factory = client_factory or _session_client
        self._resolver = PathResolver(config.bucket_prefix, config.bucket_host_name)
        self._urls = HostnameBuilder(config.bucket_host_name, self._resolver)

    @classmethod
    def from_profile(
        cls,
        profile: BucketProfile,
        *,
        settings: AdapterSettings | None = None,
        client_factory: Callable[..., object] | None = None,
    ) -> S3FileSystem:
        return cls(profile.to_config(), settings=settings, client_factory=client_factory)

    @property
    def config(self) -> BucketConfig:
        return self._config

    def resolve_bucket_path(self, path: str | None) -> str:
        return self._resolver.resolve(path)

    # Directories

    def get_directories(
        self,
        path: str | None,
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> list[str]:
        """Return the pseudo-directories directly below ``path``."""

        with self._session() as client:
            listing = self._list(
                client,
                path,
                delimiter=DELIMITER,
                cancel_requested=cancel_requested,
            )
            return [
                prefix if prefix.endswith(DELIMITER) else prefix + DELIMITER
                for prefix in listing.iter_prefixes()
            ]

    def directory_exists(self, path: str | None) -> bool:
        with self._session() as client:
            listing = self._list(client, path, max_keys=1)
            first_page = next(listing)
            return bool(first_page.keys)

    def delete_directory(
        self,
        path: str | None,
        recursive: bool = False,
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> int:
        """Delete every object whose key starts with the resolved path.

        ``recursive`` is accepted for interface compatibility and does not
        change the result: nested keys are always removed and keys that merely
        share the literal prefix (``folder-2/`` for ``folder``) go too.

        Returns the number of keys submitted for deletion.
        """

        prefix = self.resolve_bucket_path(path)
        with self._session() as client:
            keys = list(self._list(client, path, cancel_requested=cancel_requested).iter_keys())
            batch_size = self._settings.delete_batch_size
            for start in range(0, len(keys), batch_size):
                batch = keys[start:start + batch_size]
                logger.debug("Deleting %s keys under %r", len(batch), prefix)
                with self._execute("delete_objects"):
                    response = client.delete_objects(
                        Bucket=self._config.bucket_name,
                        Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                    )
                failed = (response or {}).get("Errors") or []
                if failed:
                    raise StorageError(
                        f"Failed to delete {len(failed)} objects under {prefix!r}: "
                        + ", ".join(f"{err.get('Key')} ({err.get('Code')})" for err in failed)
                    )
        logger.info(
            "Deleted %s objects under %r from %s (recursive=%s)",
            len(keys),
            prefix,
            self._config.bucket_name,
            recursive,
        )
        return len(keys)

    # Files

    def add_file(
        self,
        path: str | None,
        stream: Union[IO[bytes], bytes, bytearray],
        override_if_exists: bool = True,
    ) -> None:
        """Upload ``stream`` as a single public object at ``path``.

        The whole content is read into memory first. With
        ``override_if_exists=False`` an existing key raises
        :class:`FileExistsError` and nothing is written.
        """

        key = self.resolve_bucket_path(path)
        if isinstance(stream, (bytes, bytearray)):
            body = bytes(stream)
        else:
            body = stream.read()
        with self._session() as client:
            if not override_if_exists and self._head(client, key) is not None:
                raise FileExistsError(f"{key} already exists in {self._config.bucket_name}")
            with self._execute("put_object"):
                client.put_object(
                    Bucket=self._config.bucket_name,
                    Key=key,
                    Body=body,
                    ContentType=DEFAULT_CONTENT_TYPE,
                    ACL=DEFAULT_ACL,
                )
        logger.debug("Uploaded %s bytes to %r", len(body), key)

    def get_files(
        self,
        path: str | None,
        filter: str | None = "",
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> list[str]:
        """Return object keys directly below ``path``.

        ``filter`` is a glob such as ``*.jpg`` matched case-insensitively
        against the last segment of each key.
        """

        pattern = (filter or "").strip().lower()
        with self._session() as client:
            listing = self._list(
                client,
                path,
                delimiter=DELIMITER,
                cancel_requested=cancel_requested,
            )
            keys = list(listing.iter_keys())
        if not pattern or pattern == "*":
            return keys
        return [
            key for key in keys
            if fnmatchcase(key.rsplit(DELIMITER, 1)[-1].lower(), pattern)
        ]

    def open_file(self, path: str | None) -> io.BytesIO:
        """Return the object's content as a seekable in-memory stream.

        Raises:
            NotFoundError: when the key does not exist.
        """

        key = self.resolve_bucket_path(path)
        with self._session() as client:
            with self._execute("get_object"):
                response = client.get_object(Bucket=self._config.bucket_name, Key=key)
                body = response["Body"]
                try:
                    content = body.read()
                finally:
                    body.close()
        return io.BytesIO(content)

    def delete_file(self, path: str | None) -> None:
        key = self.resolve_bucket_path(path)
        with self._session() as client:
            try:
                with self._execute("delete_object"):
                    client.delete_object(Bucket=self._config.bucket_name, Key=key)
            except NotFoundError:
                # Some S3-compatible stores answer 404 for missing keys.
                logger.debug("delete_object: %r was already absent", key)

    def file_exists(self, path: str | None) -> bool:
        key = self.resolve_bucket_path(path)
        with self._session() as client:
            return self._head(client, key) is not None

    # Urls

    def get_url(self, path: str | None) -> str:
        return self._urls.url_for(path)

    def get_full_path(self, path: str | None) -> str:
        return self.get_url(path)

    def get_relative_path(self, full_path_or_url: str | None) -> str:
        return self._urls.relative_path(full_path_or_url)

    # Metadata

    def get_object_details(self, path: str | None) -> ObjectDetails:
        key = self.resolve_bucket_path(path)
        with self._session() as client:
            with self._execute("head_object"):
                response = client.head_object(Bucket=self._config.bucket_name, Key=key)
        return ObjectDetails(
            key=key,
            last_modified=_as_aware(response.get("LastModified")),
            size=response.get("ContentLength"),
            content_type=response.get("ContentType"),
            etag=response.get("ETag"),
        )

    def get_last_modified(self, path: str | None) -> datetime:
        details = self.get_object_details(path)
        if details.last_modified is None:
            raise StorageError(f"No modification time reported for {details.key}")
        return details.last_modified

    def get_created(self, path: str | None) -> datetime:
        """Object stores keep no creation time; the last modification is used."""

        return self.get_last_modified(path)

    # Internals

    def _create_client(self):
        config = self._config
        kwargs: dict[str, Any] = {
            "aws_access_key_id": config.access_key or None,
            "aws_secret_access_key": config.secret_key or None,
            "config": Config(signature_version="s3v4"),
        }
        if config.region:
            kwargs["region_name"] = config.region
        if config.endpoint_url:
            kwargs["endpoint_url"] = config.endpoint_url
        return self._client_factory("s3", **kwargs)

    @contextmanager
    def _session(self) -> Iterator[Any]:
        client = self._create_client()
        try:
            yield client
        finally:
            client.close()

    @contextmanager
    def _execute(self, operation: str) -> Iterator[None]:
        try:
            yield
        except ClientError as exc:
            if is_not_found(exc):
                raise NotFoundError(f"{operation}: {exc}") from exc
            logger.debug("%s failed on %s: %s", operation, self._config.bucket_name, exc)
            raise
        except BotoCoreError as exc:
            logger.debug("%s failed on %s: %s", operation, self._config.bucket_name, exc)
            raise

    def _head(self, client, key: str) -> dict | None:
        try:
            with self._execute("head_object"):
                return client.head_object(Bucket=self._config.bucket_name, Key=key)
        except NotFoundError:
            return None

    def _list(
        self,
        client,
        path: str | None,
        *,
        delimiter: str | None = None,
        max_keys: int | None = None,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> ListingAggregator:
        request: dict[str, Any] = {
            "Bucket": self._config.bucket_name,
            "Prefix": self.resolve_bucket_path(path),
            "MaxKeys": max_keys or self._settings.page_size,
        }
        if delimiter:
            request["Delimiter"] = delimiter

        def list_call(**params):
            with self._execute("list_objects"):
                return client.list_objects(**params)

        return ListingAggregator(
            list_call,
            request,
            cancel_requested=cancel_requested,
            timeout=self._settings.list_timeout,
        )


def _session_client(*args, **kwargs):
    # The default boto3 session is shared and not thread-safe.
    return boto3.session.Session().client(*args, **kwargs)


def _as_aware(value: object) -> datetime | None:
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
