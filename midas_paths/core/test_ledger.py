from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_account import Account

from midas_paths.core.constants.erc20_abi import ERC20_ABI
from midas_paths.core.errors import ValidationError
from midas_paths.core.ledger import LedgerClient, Web3LedgerClient, checksum_or_raise
from midas_paths.testing.fake_ledger import FakeLedger

TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TOKEN = "0x1111111111111111111111111111111111111111"
RANDOM_USER_0 = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_implementations_satisfy_protocol():
    assert isinstance(FakeLedger(), LedgerClient)
    assert isinstance(Web3LedgerClient(chain_id=34443, private_key=TEST_KEY), LedgerClient)


class TestChecksumOrRaise:
    def test_checksums_lowercase(self):
        assert checksum_or_raise("op", RANDOM_USER_0.lower()) == RANDOM_USER_0

    @pytest.mark.parametrize("bad", ["", "USDC", "0x1234", None])
    def test_rejects_non_addresses(self, bad):
        with pytest.raises(ValidationError) as info:
            checksum_or_raise("deposit", bad)
        assert info.value.operation == "deposit"


class TestWeb3LedgerClient:
    def test_address_from_private_key(self):
        client = Web3LedgerClient(chain_id=34443, private_key=TEST_KEY)
        assert client.current_address() == Account.from_key(TEST_KEY).address

    def test_requires_key_or_address(self):
        with pytest.raises(ValueError):
            Web3LedgerClient(chain_id=34443)

    @pytest.mark.asyncio
    async def test_resolve_address(self):
        client = Web3LedgerClient(chain_id=34443, address=RANDOM_USER_0)
        assert await client.resolve_address(RANDOM_USER_0.lower()) == RANDOM_USER_0
        with pytest.raises(ValidationError):
            await client.resolve_address("not-an-address")

    @pytest.mark.asyncio
    async def test_read_calls_contract_function(self):
        call = AsyncMock(return_value=42)
        contract = MagicMock()
        contract.functions.balanceOf = MagicMock(return_value=MagicMock(call=call))
        mock_web3 = MagicMock()
        mock_web3.eth.contract = MagicMock(return_value=contract)
        mock_web3.to_checksum_address = MagicMock(side_effect=lambda a: a)

        @asynccontextmanager
        async def mock_web3_ctx(chain_id):
            assert chain_id == 34443
            yield mock_web3

        client = Web3LedgerClient(chain_id=34443, address=RANDOM_USER_0)
        with patch("midas_paths.core.ledger.web3_utils.web3_from_chain_id", mock_web3_ctx):
            result = await client.read(TOKEN, ERC20_ABI, "balanceOf", (RANDOM_USER_0,))

        assert result == 42
        contract.functions.balanceOf.assert_called_once_with(RANDOM_USER_0)
        call.assert_awaited_once_with(block_identifier="latest")

    @pytest.mark.asyncio
    async def test_send_encodes_and_broadcasts(self):
        client = Web3LedgerClient(chain_id=34443, private_key=TEST_KEY)
        encoded = {"chainId": 34443, "data": "0x"}
        with (
            patch("midas_paths.core.ledger.encode_call", AsyncMock(return_value=encoded)) as enc,
            patch(
                "midas_paths.core.ledger.send_transaction",
                AsyncMock(return_value="0xabc"),
            ) as send,
        ):
            tx = await client.send_transaction(TOKEN, ERC20_ABI, "approve", (RANDOM_USER_0, 5))

        assert tx == "0xabc"
        kwargs = enc.await_args.kwargs
        assert kwargs["fn_name"] == "approve"
        assert kwargs["args"] == [RANDOM_USER_0, 5]
        assert kwargs["from_address"] == client.current_address()
        assert kwargs["chain_id"] == 34443
        assert send.await_args.args[0] is encoded

    @pytest.mark.asyncio
    async def test_read_only_client_refuses_to_send(self):
        client = Web3LedgerClient(chain_id=34443, address=RANDOM_USER_0)
        with pytest.raises(ValidationError, match="read-only"):
            await client.send_transaction(TOKEN, ERC20_ABI, "approve", (RANDOM_USER_0, 5))
