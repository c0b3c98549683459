from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, List, Mapping, Optional

from .atlassian import AtlassianClient, AtlassianError

logger = logging.getLogger(__name__)

API = "/wiki/rest/api"


@dataclass
class PageInfo:
    id: str
    title: str
    body: str
    version: Optional[int] = None
    space_key: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "version": self.version,
            "spaceKey": self.space_key,
        }


@dataclass
class PageSummary:
    id: str
    title: str
    space_key: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "spaceKey": self.space_key}


@dataclass
class SpaceInfo:
    key: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ConfluenceClient(AtlassianClient):
    def page_url(self, page: PageInfo) -> str:
        return f"{self.settings.base_url}/wiki/spaces/{page.space_key}/pages/{page.id}"

    def get_page(self, page_id: str) -> PageInfo | None:
        try:
            page = self.get(f"{API}/content/{page_id}", params={"expand": "body.storage,version,space"})
        except AtlassianError as exc:
            logger.debug("Page %s not available: %s", page_id, exc)
            return None
        page = page or {}
        return PageInfo(
            id=str(page.get("id") or page_id),
            title=page.get("title") or "Untitled",
            body=((page.get("body") or {}).get("storage") or {}).get("value") or "",
            version=(page.get("version") or {}).get("number"),
            space_key=(page.get("space") or {}).get("key"),
        )

    def search_pages(self, query: str, limit: int = 25) -> List[PageSummary]:
        try:
            results = self.get(
                f"{API}/content/search",
                params={"cql": f'text ~ "{query}"', "limit": limit, "expand": "space"},
            )
        except AtlassianError as exc:
            logger.debug("Page search failed: %s", exc)
            return []
        return _summaries(results)

    def get_space_pages(self, space_key: str, limit: int = 25) -> List[PageSummary]:
        try:
            results = self.get(
                f"{API}/content",
                params={"spaceKey": space_key, "type": "page", "limit": limit, "expand": "space"},
            )
        except AtlassianError as exc:
            logger.debug("Listing pages of %s failed: %s", space_key, exc)
            return []
        return _summaries(results)

    def get_space(self, space_key: str) -> SpaceInfo | None:
        try:
            spaces = self.get(f"{API}/space", params={"spaceKey": space_key, "limit": 1})
        except AtlassianError as exc:
            logger.debug("Space %s not available: %s", space_key, exc)
            return None
        results = (spaces or {}).get("results") or []
        if not results:
            return None
        space = results[0]
        return SpaceInfo(key=space.get("key") or space_key, name=space.get("name") or space_key)

    def create_page(
        self,
        space_key: str,
        title: str,
        body: str,
        parent_id: str | None = None,
    ) -> PageInfo | None:
        payload: dict[str, Any] = {
            "type": "page",
            "title": title,
            "space": {"key": space_key},
            "body": _storage(body),
        }
        if parent_id:
            payload["ancestors"] = [{"id": parent_id}]

        try:
            result = self.post(f"{API}/content", json=payload) or {}
        except AtlassianError as exc:
            logger.error("Failed to create page: %s", exc)
            return None

        return PageInfo(
            id=str(result.get("id") or ""),
            title=result.get("title") or title,
            body=body,
            version=(result.get("version") or {}).get("number"),
            space_key=space_key,
        )

    def update_page(self, page_id: str, title: str | None = None, body: str | None = None) -> PageInfo | None:
        """Replace title and/or body, bumping the page version by one."""
        current = self.get_page(page_id)
        if current is None:
            logger.error("Page not found: %s", page_id)
            return None

        payload: dict[str, Any] = {
            "id": page_id,
            "type": "page",
            "title": title or current.title,
            "version": {"number": (current.version or 0) + 1},
        }
        if body:
            payload["body"] = _storage(body)

        try:
            result = self.put(f"{API}/content/{page_id}", json=payload) or {}
        except AtlassianError as exc:
            logger.error("Failed to update page: %s", exc)
            return None

        return PageInfo(
            id=str(result.get("id") or page_id),
            title=result.get("title") or current.title,
            body=body or current.body,
            version=(result.get("version") or {}).get("number"),
            space_key=current.space_key,
        )

    def delete_page(self, page_id: str) -> bool:
        try:
            self.delete(f"{API}/content/{page_id}")
        except AtlassianError as exc:
            logger.error("Failed to delete page: %s", exc)
            return False
        return True


def _storage(body: str) -> dict[str, Any]:
    return {"storage": {"value": body, "representation": "storage"}}


def _summaries(results: Mapping[str, Any] | None) -> List[PageSummary]:
    return [
        PageSummary(
            id=str(page.get("id") or ""),
            title=page.get("title") or "Untitled",
            space_key=(page.get("space") or {}).get("key"),
        )
        for page in (results or {}).get("results") or []
    ]
