from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from midas_paths.core.config import CONFIG, set_config
from midas_paths.core.utils.web3 import (
    _get_rpcs_for_chain_id,
    get_web3s_from_chain_id,
    web3_from_chain_id,
)


@pytest.fixture
def restore_config():
    saved = dict(CONFIG)
    yield
    set_config(saved)


class TestRpcResolution:
    def test_configured_rpcs_win(self, restore_config):
        set_config({"strategy": {"rpc_urls": {"34443": ["https://a", "https://b"]}}})
        assert _get_rpcs_for_chain_id(34443) == ["https://a", "https://b"]

    def test_single_string_rpc(self, restore_config):
        set_config({"strategy": {"rpc_urls": {"34443": "https://only"}}})
        assert _get_rpcs_for_chain_id(34443) == ["https://only"]

    def test_falls_back_to_public_mode_rpc(self, restore_config):
        set_config({})
        assert _get_rpcs_for_chain_id(34443) == ["https://mainnet.mode.network"]

    def test_unknown_chain(self, restore_config):
        set_config({})
        with pytest.raises(ValueError, match="No RPCs configured"):
            _get_rpcs_for_chain_id(1)

    def test_one_web3_per_rpc(self, restore_config):
        set_config({"strategy": {"rpc_urls": {"34443": ["https://a", "https://b"]}}})
        assert len(get_web3s_from_chain_id(34443)) == 2


@pytest.mark.asyncio
async def test_web3_from_chain_id_disconnects(restore_config):
    set_config({"strategy": {"rpc_urls": {"34443": ["https://a"]}}})
    fake_web3 = MagicMock()
    fake_web3.provider.disconnect = AsyncMock()
    with patch(
        "midas_paths.core.utils.web3._get_web3", return_value=fake_web3
    ) as get_web3:
        async with web3_from_chain_id(34443) as web3:
            assert web3 is fake_web3
    get_web3.assert_called_once_with("https://a")
    fake_web3.provider.disconnect.assert_awaited_once()
