# studenthome/core/fetch/image_check.py
"""
Reachability check for stored image URLs.

One HEAD request per URL with an explicit timeout, fanned out over a bounded
thread pool. Any error, timeout or status >= 400 marks the URL unreachable.
There are no retries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import requests

from studenthome.core.errors import ImageCheckError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "studenthome-catalog/0.1 (+image-check)"


def _http_head(url: str, ua: str, timeout: float) -> int:
    try:
        resp = requests.head(url, headers={"User-Agent": ua}, timeout=timeout, allow_redirects=True)
        return resp.status_code
    except requests.RequestException as e:
        raise ImageCheckError(f"{type(e).__name__}: {e}") from e


@dataclass(frozen=True)
class ImageChecker:
    timeout_s: float = 5.0
    workers: int = 10
    user_agent: str = DEFAULT_USER_AGENT

    def is_reachable(self, url: str) -> bool:
        try:
            status = _http_head(url, self.user_agent, self.timeout_s)
        except ImageCheckError as e:
            logger.debug("image unreachable %s: %s", url, e)
            return False
        if status >= 400:
            logger.debug("image unreachable %s: HTTP %d", url, status)
            return False
        return True

    def check_many(self, urls: Iterable[str]) -> dict[str, bool]:
        """URL → reachable, for each distinct URL."""
        unique = list(dict.fromkeys(urls))
        if not unique:
            return {}
        with ThreadPoolExecutor(max_workers=max(1, self.workers)) as pool:
            results = list(pool.map(self.is_reachable, unique))
        return dict(zip(unique, results, strict=True))
