from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Iterator, Sequence

import requests

from placements.core import transport
from placements.core.validation import MSG_EMPTY_FEED, Rule, apply_rules
from placements.errors import FeedError, FormatError, NotFetchedError

logger = logging.getLogger(__name__)

# Fewer listings than this and the per-listing checks are skipped
MIN_CHECKED_ITEMS = 11


def parse_last_modified(value: str) -> datetime:
    """Parse an RFC 1123 date as sent in the Last-Modified header."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        raise FormatError(f"can't parse Last-Modified {value!r}") from e
    if parsed.tzinfo is None:
        raise FormatError(f"Last-Modified {value!r} has no time zone")
    return parsed


class Feed(ABC):
    """
    One platform's feed bound to a URL.

    Usage: feed.get(); problems = feed.check()
    """

    def __init__(self, url: str, session: requests.Session | None = None):
        self.url = url
        # Reuse a session for keep-alive + connection pooling
        self._session = session or requests.Session()
        self._fetched = False
        self.last_modified: datetime | None = None
        self.data: Any = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Short platform name, e.g. 'avito'."""

    @property
    @abstractmethod
    def rules(self) -> Sequence[Rule]:
        """Ordered checks run against every listing."""

    @abstractmethod
    def decode(self, body: bytes) -> Any:
        """Turn the raw payload into this platform's data tree."""

    @abstractmethod
    def listings(self) -> Sequence[Any]:
        """Listings of the decoded data, in feed order."""

    @abstractmethod
    def listing_id(self, listing: Any) -> str:
        """Identifier used in messages; "" when the listing has none."""

    @property
    def is_fetched(self) -> bool:
        return self._fetched

    def get_info(self, timeout: float | None = None) -> None:
        headers = transport.fetch_headers(self._session, self.url, timeout=timeout)
        value = headers.get(transport.HEADER_LAST_MODIFIED)
        if value:
            self.last_modified = parse_last_modified(value)
        else:
            logger.warning("[%s] Header not contains `%s`", self.name, transport.HEADER_LAST_MODIFIED)

    def get(self, timeout: float | None = None) -> None:
        self._fetched = False

        try:
            self.get_info(timeout=timeout)
        except FeedError as e:
            raise type(e)(f"can't get feed info: {e}") from e

        try:
            body, _ = transport.fetch_body(self._session, self.url, timeout=timeout)
        except FeedError as e:
            raise type(e)(f"can't get feed data: {e}") from e

        self.data = self.decode(body)
        self.after_decode()
        self._fetched = True
        logger.info("[%s] got %d listings from %s", self.name, len(self.listings()), self.url)

    def after_decode(self) -> None:
        """Hook run once per get(), after a successful decode."""

    def check(self) -> list[str]:
        if not self._fetched:
            raise NotFetchedError("feed not got")

        count = len(self.listings())
        if count < 2:
            return [MSG_EMPTY_FEED]
        if count < MIN_CHECKED_ITEMS:
            return [f"feed contains only {count} items"]

        return list(self.findings())

    def findings(self) -> Iterator[str]:
        for idx, listing in enumerate(self.listings()):
            yield from apply_rules(self.rules, listing, idx, self.listing_id(listing))
