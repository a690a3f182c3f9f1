from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from midas_paths.core.clients.MetadataClient import MetadataClient, ipfs_hash
from midas_paths.core.clients.PythClient import PythClient


def json_response(payload):
    resp = MagicMock()
    resp.raise_for_status = MagicMock()
    resp.json = MagicMock(return_value=payload)
    return resp


class TestIpfsHash:
    @pytest.mark.parametrize(
        "uri,expected",
        [
            ("ipfs://QmHash", "QmHash"),
            ("QmHash", "QmHash"),
            (" /QmHash ", "QmHash"),
            ("", ""),
        ],
    )
    def test_normalizes(self, uri, expected):
        assert ipfs_hash(uri) == expected


@pytest.mark.asyncio
class TestMetadataClient:
    async def test_fetches_from_gateway(self):
        client = MetadataClient(gateway="https://gw.example/ipfs/")
        client.client.get = AsyncMock(return_value=json_response({"name": "Velo"}))

        metadata = await client.get_gauge_metadata("ipfs://QmGauge")

        assert metadata == {"name": "Velo"}
        client.client.get.assert_awaited_once_with("https://gw.example/ipfs/QmGauge")

    async def test_http_failure_returns_none(self):
        client = MetadataClient(gateway="https://gw.example/ipfs")
        client.client.get = AsyncMock(side_effect=httpx.ConnectError("boom"))
        assert await client.get_gauge_metadata("QmGauge") is None

    async def test_non_object_payload_returns_none(self):
        client = MetadataClient(gateway="https://gw.example/ipfs")
        client.client.get = AsyncMock(return_value=json_response(["x"]))
        assert await client.get_gauge_metadata("QmGauge") is None

    async def test_empty_uri_skips_request(self):
        client = MetadataClient(gateway="https://gw.example/ipfs")
        client.client.get = AsyncMock()
        assert await client.get_gauge_metadata("ipfs://") is None
        client.client.get.assert_not_awaited()


@pytest.mark.asyncio
class TestPythClient:
    async def test_usd_price(self):
        client = PythClient(base_url="https://hermes.example")
        client.client.get = AsyncMock(
            side_effect=[
                json_response([{"id": "feed-eth"}]),
                json_response({"parsed": [{"price": {"price": "312345", "expo": -2}}]}),
            ]
        )

        price = await client.get_usd_price("ETH")

        assert price == Decimal("3123.45")
        first_call = client.client.get.await_args_list[0]
        assert first_call.args[0] == "https://hermes.example/v2/price_feeds"
        assert first_call.kwargs["params"]["query"] == "eth"

    async def test_unknown_symbol(self):
        client = PythClient(base_url="https://hermes.example")
        client.client.get = AsyncMock(return_value=json_response([]))
        assert await client.get_usd_price("NOPE") is None

    async def test_http_error_degrades(self):
        client = PythClient(base_url="https://hermes.example")
        client.client.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        assert await client.get_usd_price("ETH") is None

    async def test_malformed_payload_degrades(self):
        client = PythClient(base_url="https://hermes.example")
        client.client.get = AsyncMock(
            side_effect=[
                json_response([{"id": "feed-eth"}]),
                json_response({"parsed": [{"price": {}}]}),
            ]
        )
        assert await client.get_usd_price("ETH") is None
