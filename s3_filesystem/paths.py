from __future__ import annotations
"""Mapping between virtual filesystem paths and bucket keys."""

DELIMITER = "/"


def parse_bucket_prefix(prefix: str | None) -> str:
    """Normalize a configured key prefix.

    The result is empty or ends with exactly the delimiter, and never starts
    with one.
    """

    if not prefix:
        return ""
    prefix = prefix.replace("\\", DELIMITER).lstrip(DELIMITER)
    if not prefix:
        return ""
    return prefix if prefix.endswith(DELIMITER) else prefix + DELIMITER


class PathResolver:
    """Turns caller supplied paths (or full URLs) into bucket keys."""

    def __init__(self, bucket_prefix: str = "", bucket_host_name: str = ""):
        self._bucket_prefix = bucket_prefix
        self._bucket_host_name = bucket_host_name

    @property
    def bucket_prefix(self) -> str:
        return self._bucket_prefix

    def resolve(self, path: str | None) -> str:
        if not path:
            return self._bucket_prefix
        host = self._bucket_host_name
        if host and path.lower().startswith(host.lower()):
            path = path[len(host):]

        path = path.replace("\\", DELIMITER)
        # Keys never start with the delimiter, however many the caller sent.
        path = path.lstrip(DELIMITER)
        return self._bucket_prefix + path
