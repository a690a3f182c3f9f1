from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from midas_paths.adapters.token_adapter.adapter import TokenAdapter
from midas_paths.core.errors import ValidationError
from midas_paths.testing.fake_ledger import CALLER

TOKEN = "0x4200000000000000000000000000000000000006"
SPENDER = "0x6666666666666666666666666666666666666666"
RECIPIENT = "0x7777777777777777777777777777777777777777"


@pytest.fixture
def price_client():
    client = MagicMock()
    client.get_usd_price = AsyncMock(return_value=Decimal("2000"))
    return client


@pytest.fixture
def adapter(fake_ledger, price_client):
    fake_ledger.on_read("decimals", 18)
    fake_ledger.on_read("symbol", "WETH")
    fake_ledger.on_read("balanceOf", 15 * 10**17)
    fake_ledger.on_read("allowance", 42)
    return TokenAdapter(fake_ledger, chain_id=34443, price_client=price_client)


class TestTokenAdapter:
    def test_adapter_type(self, adapter):
        assert adapter.adapter_type == "TOKEN"


@pytest.mark.asyncio
class TestBalances:
    async def test_get_balance_with_price(self, adapter, fake_ledger, price_client):
        result = await adapter.get_balance(TOKEN)

        assert result["wallet"] == CALLER
        assert result["symbol"] == "WETH"
        assert result["raw_balance"] == str(15 * 10**17)
        assert result["balance"] == "1.5"
        assert result["usd_value"] == pytest.approx(3000.0)
        assert result["price_available"] is True
        price_client.get_usd_price.assert_awaited_once_with("WETH")
        assert fake_ledger.read_calls("balanceOf")[0].args == (CALLER,)

    async def test_get_balance_without_price(self, adapter, price_client):
        price_client.get_usd_price.return_value = None

        result = await adapter.get_balance(TOKEN, wallet=RECIPIENT)

        assert result["wallet"] == RECIPIENT
        assert result["usd_value"] is None
        assert result["price_available"] is False

    async def test_get_allowance(self, adapter, fake_ledger):
        assert await adapter.get_allowance(TOKEN, SPENDER) == 42
        assert fake_ledger.read_calls("allowance")[0].args == (CALLER, SPENDER)

    async def test_invalid_address(self, adapter):
        with pytest.raises(ValidationError):
            await adapter.get_balance("not-an-address")


@pytest.mark.asyncio
class TestTransactions:
    async def test_approve_exact_amount(self, adapter, fake_ledger):
        await adapter.approve(TOKEN, SPENDER, 123)
        (tx,) = fake_ledger.sent("approve")
        assert (tx.address, tx.args) == (TOKEN, (SPENDER, 123))

    async def test_approve_negative(self, adapter, fake_ledger):
        with pytest.raises(ValidationError):
            await adapter.approve(TOKEN, SPENDER, -1)
        assert fake_ledger.transactions == []

    async def test_revoke_approval(self, adapter, fake_ledger):
        await adapter.revoke_approval(TOKEN, SPENDER)
        assert fake_ledger.sent("approve")[0].args == (SPENDER, 0)

    async def test_transfer(self, adapter, fake_ledger):
        await adapter.transfer(TOKEN, RECIPIENT, 10)
        (tx,) = fake_ledger.sent("transfer")
        assert tx.args == (RECIPIENT, 10)

    @pytest.mark.parametrize("amount", [0, -10])
    async def test_transfer_requires_positive_amount(self, adapter, fake_ledger, amount):
        with pytest.raises(ValidationError, match="positive"):
            await adapter.transfer(TOKEN, RECIPIENT, amount)
        assert fake_ledger.transactions == []


@pytest.mark.asyncio
class TestConversions:
    async def test_to_base_units(self, adapter):
        assert await adapter.convert_to_base_units(TOKEN, "1.25") == 125 * 10**16

    async def test_to_base_units_truncates(self, adapter, fake_ledger):
        fake_ledger.on_read("decimals", 6)
        assert await adapter.convert_to_base_units(TOKEN, "0.0000019") == 1

    @pytest.mark.parametrize("amount", ["abc", "-1", "nan"])
    async def test_to_base_units_rejects(self, adapter, amount):
        with pytest.raises(ValidationError):
            await adapter.convert_to_base_units(TOKEN, amount)

    async def test_from_base_units(self, adapter):
        assert await adapter.convert_from_base_units(TOKEN, 25 * 10**17) == Decimal("2.5")
