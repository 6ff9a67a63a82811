import logging
from typing import Mapping

import requests

from placements import config
from placements.errors import TransportError

logger = logging.getLogger(__name__)

HEADER_LAST_MODIFIED = "Last-Modified"


def _ensure_ok(resp: requests.Response) -> None:
    if resp.status_code != 200:
        raise TransportError(f"feed not availible. Status: {resp.status_code} {resp.reason or ''}".rstrip())


def _timeout(timeout: float | None) -> float:
    return config.HTTP_TIMEOUT if timeout is None else timeout


def fetch_headers(session: requests.Session, url: str,
                  timeout: float | None = None) -> Mapping[str, str]:
    """HEAD the feed and return its response headers."""
    try:
        resp = session.head(url, headers=config.HEADERS,
                            timeout=_timeout(timeout), allow_redirects=True)
    except requests.RequestException as e:
        raise TransportError(f"request failed: {e}") from e
    _ensure_ok(resp)
    return resp.headers


def fetch_body(session: requests.Session, url: str,
               timeout: float | None = None) -> tuple[bytes, Mapping[str, str]]:
    """GET the feed and return (body, headers)."""
    try:
        resp = session.get(url, headers=config.HEADERS, timeout=_timeout(timeout))
    except requests.RequestException as e:
        raise TransportError(f"request failed: {e}") from e
    _ensure_ok(resp)
    logger.debug("fetched %d bytes from %s", len(resp.content), url)
    return resp.content, resp.headers
