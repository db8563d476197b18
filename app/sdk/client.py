"""
Search API client
=================

Small ``requests`` client for services that call this API. Non-2xx responses
raise ``StatusError`` carrying the status code and the API's plain-text
message.
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Union

import requests

from app.clients.http import build_session
from app.models.releases import ReleaseResponse
from app.models.search import SearchResponse

QueryParams = Mapping[str, Union[str, Sequence[str]]]


class StatusError(Exception):
    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.code = code

    @property
    def status(self) -> int:
        return self.code


class SearchAPIClient:
    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.url = url.rstrip("/")
        self.session = session or build_session()
        self.timeout = timeout

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        try:
            resp = self.session.request(
                method,
                f"{self.url}{path}",
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StatusError(f"failed to call search api, error is: {exc}", 500) from exc

        if resp.status_code < 200 or resp.status_code >= 400:
            raise StatusError(
                f"failed as unexpected code from search api: {resp.status_code} {resp.text.strip()}",
                resp.status_code,
            )
        return resp

    def _json(self, resp: requests.Response, what: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise StatusError(f"failed to unmarshal {what} response - error is: {exc}", resp.status_code) from exc

    # ------------------------------ Calls ------------------------------------

    def search(self, params: Optional[QueryParams] = None, headers: Optional[Dict[str, str]] = None) -> SearchResponse:
        resp = self._call("GET", "/search", params=params, headers=headers)
        return SearchResponse.model_validate(self._json(resp, "search"))

    def release_calendar(
        self, params: Optional[QueryParams] = None, headers: Optional[Dict[str, str]] = None
    ) -> ReleaseResponse:
        resp = self._call("GET", "/search/releases", params=params, headers=headers)
        return ReleaseResponse.model_validate(self._json(resp, "release calendar search"))

    def data(self, uris: Sequence[str], types: Sequence[str] = ()) -> Dict[str, Any]:
        resp = self._call("GET", "/data", params={"uris": list(uris), "types": list(types)})
        return self._json(resp, "data")

    def timeseries(self, cdid: str) -> Dict[str, Any]:
        return self._json(self._call("GET", f"/timeseries/{cdid}"), "timeseries")

    def create_index(self, service_auth_token: str = "") -> str:
        headers = {"Authorization": f"Bearer {service_auth_token}"} if service_auth_token else None
        resp = self._call("POST", "/search", headers=headers)
        return self._json(resp, "creating index search")["index_name"]

    def health(self) -> Dict[str, Any]:
        # /health answers 500 with a JSON body when the cluster is red
        try:
            resp = self.session.get(f"{self.url}/health", timeout=self.timeout)
        except requests.RequestException as exc:
            raise StatusError(f"failed to call search api, error is: {exc}", 500) from exc
        return self._json(resp, "health")
