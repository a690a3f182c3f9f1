import pytest

from midas_paths.core.utils.tokens import ensure_allowance
from midas_paths.testing.fake_ledger import ASSET, CALLER, LENDING_POOL


class TestEnsureAllowance:
    @pytest.mark.asyncio
    async def test_noop_when_allowance_covers_amount(self, fake_ledger, lending_market):
        lending_market.allowances[LENDING_POOL.lower()] = 500

        tx = await ensure_allowance(
            fake_ledger, token_address=ASSET, spender=LENDING_POOL, amount=500
        )

        assert tx is None
        assert fake_ledger.transactions == []
        (read,) = fake_ledger.read_calls("allowance")
        assert read.args == (CALLER, LENDING_POOL)

    @pytest.mark.asyncio
    async def test_approves_exact_amount_when_short(self, fake_ledger, lending_market):
        lending_market.allowances[LENDING_POOL.lower()] = 499

        tx = await ensure_allowance(
            fake_ledger, token_address=ASSET, spender=LENDING_POOL, amount=500
        )

        assert tx is not None
        (approve,) = fake_ledger.sent("approve")
        assert approve.address == ASSET
        assert approve.args == (LENDING_POOL, 500)
        assert lending_market.pool_allowance == 500

    @pytest.mark.asyncio
    async def test_uses_explicit_owner(self, fake_ledger, lending_market):
        owner = "0x9999999999999999999999999999999999999999"
        await ensure_allowance(
            fake_ledger, token_address=ASSET, spender=LENDING_POOL, amount=1, owner=owner
        )
        (read,) = fake_ledger.read_calls("allowance")
        assert read.args[0] == owner
