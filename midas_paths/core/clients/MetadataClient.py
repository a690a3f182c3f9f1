from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from midas_paths.core.config import get_ipfs_gateway
from midas_paths.core.constants.base import DEFAULT_HTTP_TIMEOUT


def ipfs_hash(uri: str) -> str:
    uri = str(uri).strip()
    if uri.startswith("ipfs://"):
        uri = uri[len("ipfs://") :]
    return uri.lstrip("/")


class MetadataClient:
    """Fetches gauge metadata JSON from an IPFS gateway (best effort)."""

    def __init__(self, *, gateway: str | None = None) -> None:
        self._gateway = gateway
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT))

    @property
    def gateway(self) -> str:
        return str(self._gateway or get_ipfs_gateway()).rstrip("/")

    async def get_gauge_metadata(self, uri: str) -> dict[str, Any] | None:
        content_hash = ipfs_hash(uri)
        if not content_hash:
            return None
        try:
            resp = await self.client.get(f"{self.gateway}/{content_hash}")
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Metadata fetch failed for {uri}: {exc}")
            return None
        return data if isinstance(data, dict) else None

    async def close(self) -> None:
        await self.client.aclose()


METADATA_CLIENT = MetadataClient()
