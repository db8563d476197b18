"""
Shared HTTP plumbing for the upstream services the reindexer reads from.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.core.errors import DecodeError, UpstreamError

# the CMS published index takes ~10s to build, so leave headroom
DEFAULT_TIMEOUT = 30.0

log = logging.getLogger(__name__)


def build_session(retries: int = 2, backoff_factor: float = 0.5) -> requests.Session:
    session = requests.Session()

    # Retry strategy for 429, 500, 502, 503, 504
    retry_strategy = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


class UpstreamClient:
    """GET-only JSON client for one upstream base URL."""

    upstream = ""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or build_session()
        self.timeout = timeout

    def _get(
        self,
        path: str,
        *,
        kind: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bytes:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            log.warning("%s GET %s failed: %s", self.upstream, url, exc)
            raise UpstreamError(self.upstream, exc, kind=kind) from exc
        return resp.content

    def _get_json(self, path: str, *, kind: str, **kwargs: Any) -> Any:
        body = self._get(path, kind=kind, **kwargs)
        try:
            return json.loads(body)
        except ValueError as exc:
            raise DecodeError(exc, kind=kind) from exc
