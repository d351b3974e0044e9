from __future__ import annotations
"""Public URL construction for bucket keys."""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .paths import PathResolver


def parse_bucket_host_name(host_name: str) -> str:
    """Return the host name as an absolute URL ending in ``/``.

    The scheme check is a plain ``startswith("http")`` so values such as
    ``httpcdn.example.com`` are left without a scheme.
    """

    value = host_name if host_name.endswith("/") else host_name + "/"
    if not value.startswith("http"):
        value = "http://" + value
    return value


class HostnameBuilder:
    """Builds absolute URLs from virtual paths."""

    def __init__(self, bucket_host_name: str, resolver: PathResolver):
        self._bucket_host_name = bucket_host_name
        self._resolver = resolver

    @property
    def bucket_host_name(self) -> str:
        return self._bucket_host_name

    def url_for(self, path: str | None) -> str:
        return self._bucket_host_name + self._resolver.resolve(path)

    def relative_path(self, full_path_or_url: str | None) -> str:
        if not full_path_or_url:
            return ""
        if full_path_or_url.startswith("http"):
            return full_path_or_url
        return self.url_for(full_path_or_url)
