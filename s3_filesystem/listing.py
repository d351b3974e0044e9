from __future__ import annotations
"""Paginated listing over the S3 ``ListObjects`` marker protocol."""
from itertools import chain
import logging
import time
from typing import Any, Callable, Iterator, Mapping, Optional

from .models import ListingPage

logger = logging.getLogger(__name__)


class ListingCancelledError(RuntimeError):
    """Raised when a listing is cancelled or runs past its time limit."""


class ListingAggregator:
    """Iterates over every page of a list request, one call per page.

    The first page is requested on the first ``next()``. Each following
    request carries the previous page's marker until a page reports that it
    is not truncated. The iterator cannot be restarted: once it is exhausted
    or a call fails it stays finished. Client errors propagate unchanged.
    """

    def __init__(
        self,
        list_call: Callable[..., Mapping[str, Any]],
        request: Mapping[str, Any],
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._list_call = list_call
        self._request = dict(request)
        self._cancel_requested = cancel_requested
        self._timeout = timeout if timeout and timeout > 0 else None
        self._clock = clock
        self._deadline: float | None = None
        self._page_number = 0
        self._finished = False

    def __iter__(self) -> ListingAggregator:
        return self

    def __next__(self) -> ListingPage:
        if self._finished:
            raise StopIteration
        if self._page_number == 0:
            if self._timeout is not None:
                self._deadline = self._clock() + self._timeout
        else:
            self._check_cancelled()

        # Stays finished if the call raises.
        self._finished = True
        response = self._list_call(**self._request)
        self._page_number += 1
        page = self._build_page(response)
        logger.debug(
            "Listed page %s of %s (prefix=%r): %s keys, %s prefixes",
            page.number,
            self._request.get("Bucket"),
            self._request.get("Prefix"),
            len(page.keys),
            len(page.prefixes),
        )

        if page.is_truncated:
            if page.next_marker:
                self._request["Marker"] = page.next_marker
                self._finished = False
            else:
                logger.warning(
                    "Truncated listing for %r returned no marker; stopping after page %s",
                    self._request.get("Prefix"),
                    page.number,
                )
        return page

    def iter_keys(self) -> Iterator[str]:
        return chain.from_iterable(page.keys for page in self)

    def iter_prefixes(self) -> Iterator[str]:
        return chain.from_iterable(page.prefixes for page in self)

    def _build_page(self, response: Mapping[str, Any]) -> ListingPage:
        keys = [obj["Key"] for obj in response.get("Contents", []) or []]
        prefixes = [common["Prefix"] for common in response.get("CommonPrefixes", []) or []]
        truncated = bool(response.get("IsTruncated", False))
        # NextMarker is only returned when a delimiter was sent.
        marker = response.get("NextMarker")
        if not marker and truncated:
            # Keys and prefixes interleave; resume after whichever sorts last.
            candidates = [entries[-1] for entries in (keys, prefixes) if entries]
            marker = max(candidates) if candidates else None
        return ListingPage(
            number=self._page_number,
            keys=keys,
            prefixes=prefixes,
            is_truncated=truncated,
            next_marker=marker or None,
        )

    def _check_cancelled(self) -> None:
        if self._cancel_requested and self._cancel_requested():
            self._finished = True
            raise ListingCancelledError("Listing cancelled by caller")
        if self._deadline is not None and self._clock() >= self._deadline:
            self._finished = True
            raise ListingCancelledError(
                f"Listing exceeded {self._timeout:g}s after {self._page_number} pages"
            )
