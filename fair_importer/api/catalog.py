import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ..models import DuplicateCheck, ImportResult, PromoterRef, VenueRef

VENUES_PATH = "/api/admin/venues"
PROMOTERS_PATH = "/api/admin/promoters"
CHECK_DUPLICATE_PATH = "/api/admin/import-url/check-duplicate"
IMPORT_PATH = "/api/admin/import-url"


class CatalogError(Exception):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CatalogClient:
    """Talks to the admin catalog API that persists venues, promoters and events."""

    def __init__(
        self, base_url: str, api_token: Optional[str] = None, timeout: int = 30
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logging.getLogger(self.__class__.__name__)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> Tuple[int, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(
                timeout=self.timeout, headers=self._headers()
            ) as session:
                async with session.request(method, url, **kwargs) as response:
                    try:
                        body = await response.json(content_type=None)
                    except (json.JSONDecodeError, aiohttp.ContentTypeError):
                        body = None
                    return response.status, body
        except asyncio.TimeoutError as e:
            raise CatalogError(f"Timed out calling {method} {path}") from e
        except aiohttp.ClientError as e:
            raise CatalogError(f"Network error calling {method} {path}: {e}") from e

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        status, body = await self._request("GET", path, params=params)
        if status != 200 or body is None:
            message = body.get("error") if isinstance(body, dict) else None
            raise CatalogError(message or f"GET {path} failed (HTTP {status})", status)
        return body

    async def list_venues(self) -> List[VenueRef]:
        body = await self._get_json(VENUES_PATH)
        return [VenueRef.from_dict(item) for item in self._rows_with_id(body, "venues")]

    async def list_promoters(self) -> List[PromoterRef]:
        body = await self._get_json(PROMOTERS_PATH)
        return [PromoterRef.from_dict(item) for item in self._rows_with_id(body, "promoters")]

    def _rows_with_id(self, body: Any, key: str) -> List[Dict[str, Any]]:
        rows = []
        for item in _as_list(body, key):
            if item.get("id") in (None, ""):
                self.logger.warning(f"Skipping {key} row without an id: {item}")
                continue
            rows.append(item)
        return rows

    async def check_duplicate(self, url: str) -> DuplicateCheck:
        body = await self._get_json(CHECK_DUPLICATE_PATH, params={"url": url})
        if not isinstance(body, dict):
            raise CatalogError("Unexpected duplicate-check response")
        return DuplicateCheck.from_dict(body)

    async def import_event(self, payload: Dict[str, Any]) -> ImportResult:
        """POST one event. Error bodies come back as unsuccessful results."""
        status, body = await self._request("POST", IMPORT_PATH, json=payload)
        if not isinstance(body, dict):
            raise CatalogError(f"Import failed (HTTP {status})", status)
        result = ImportResult.from_dict(body)
        if status >= 400 and result.success:
            result.success = False
        return result


def _as_list(body: Any, key: str) -> List[Dict[str, Any]]:
    # the admin API returns either a bare list or {"<key>": [...]}
    if isinstance(body, dict):
        body = body.get(key, [])
    if not isinstance(body, list):
        raise CatalogError(f"Unexpected response listing {key}")
    return [item for item in body if isinstance(item, dict)]
