from __future__ import annotations

import logging
from typing import Optional

import requests

from ..common.validators import require_http_url
from ..core.constants import DEFAULT_IMAGE_FETCH_TIMEOUT_SECONDS, MAX_IMAGE_BYTES
from ..core.exceptions import ResolverFailure
from .resolver import ImageSource

logger = logging.getLogger(__name__)


class HttpImageFetcher(ImageSource):
    """Fetches face images referenced by URL (e.g. a CDN upload)."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = DEFAULT_IMAGE_FETCH_TIMEOUT_SECONDS,
        max_bytes: int = MAX_IMAGE_BYTES,
    ):
        self._session = session or requests.Session()
        self._timeout = float(timeout)
        self._max_bytes = int(max_bytes)

    def fetch(self, url: str) -> bytes:
        url = require_http_url(url, "imageUrl")
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.warning("Image download failed (%s): %s", status, url)
            # 4xx will not change on retry; 5xx might.
            raise ResolverFailure(
                f"Could not download imageUrl: {exc}",
                retryable=status is None or status >= 500,
            ) from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Image download failed: %s (%s)", url, exc)
            raise ResolverFailure(f"Could not download imageUrl: {exc}") from exc

        data = response.content
        if not data:
            raise ResolverFailure("imageUrl returned an empty body", retryable=False)
        if len(data) > self._max_bytes:
            raise ResolverFailure(
                f"imageUrl image is {len(data)} bytes; limit is {self._max_bytes}",
                retryable=False,
            )
        return data
