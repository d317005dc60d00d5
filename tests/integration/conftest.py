"""Shared fixtures for integration tests.

The gateway's httpx client is replaced by an in-memory activity server, so the
real parsing, fallback and caching code runs without a network.
"""

from typing import Any, Dict, List, Tuple
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest


GATEWAY_BASE = "https://gateway.example.com"
GATEWAY_URL = GATEWAY_BASE + "/api/activity"
STATIC_URL = "https://dash.example.com/data/activity.json"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def activity_document(*item_ids: str, generated: str = "2026-03-14T12:00:00Z") -> Dict[str, Any]:
    """Build an activity document with items newest first, one minute apart."""
    return {
        "generated": generated,
        "items": [
            {
                "id": item_id,
                "type": "commit",
                "timestamp": f"2026-03-14T11:{59 - i:02d}:00Z",
                "title": f"Item {item_id}",
                "source": "git",
            }
            for i, item_id in enumerate(item_ids)
        ],
    }


def json_response(payload: Any, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json = MagicMock(return_value=payload)
    if status_code >= 400:
        response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError(
                f"{status_code} error", request=MagicMock(), response=response
            )
        )
    else:
        response.raise_for_status = MagicMock()
    return response


class FakeActivityServer:
    """Answers GET requests from a URL -> payload table.

    A payload may be a document, an HTTP status code, or an exception to raise.
    Unknown URLs answer 404.
    """

    def __init__(self):
        self.documents: Dict[str, Any] = {}
        self.requests: List[Tuple[str, Dict[str, str]]] = []

    async def get(self, url: str, **kwargs) -> MagicMock:
        self.requests.append((url, kwargs.get("params") or {}))
        payload = self.documents.get(url, 404)
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, int):
            return json_response({}, status_code=payload)
        return json_response(payload)

    @property
    def requested_urls(self) -> List[str]:
        return [url for url, _ in self.requests]

    def client(self) -> AsyncMock:
        mock_instance = AsyncMock()
        mock_instance.get = self.get
        mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
        mock_instance.__aexit__ = AsyncMock(return_value=None)
        return mock_instance


@pytest.fixture
def activity_server():
    """An in-memory activity server patched in as the gateway's HTTP client."""
    server = FakeActivityServer()
    with patch("live_feed.services.gateway.httpx.AsyncClient") as mock_client:
        mock_client.return_value = server.client()
        yield server
