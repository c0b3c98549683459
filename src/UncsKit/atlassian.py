from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import AtlassianSettings

logger = logging.getLogger(__name__)


class AtlassianError(Exception):
    """A request to the Atlassian REST API failed."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class AtlassianClient:
    """Authenticated JSON client for one Atlassian Cloud site."""

    def __init__(self, settings: AtlassianSettings, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self._client = httpx.Client(
            base_url=settings.base_url,
            auth=httpx.BasicAuth(settings.email, settings.api_token),
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(settings.timeout),
            transport=transport,
        )

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, path)
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise AtlassianError(f"{method} {path} failed: {exc}") from exc

        if resp.is_error:
            payload = _decode(resp)
            raise AtlassianError(
                f"{method} {path} returned {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                payload=payload,
            )
        return _decode(resp)

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _decode(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
