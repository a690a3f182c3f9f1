import random

import pytest

from midas_paths.core.constants.base import ZERO_ADDRESS
from midas_paths.core.utils.trove_hints import TroveHints, find_trove_hints, num_trials
from midas_paths.testing.fake_ledger import FakeRevert

TROVE_MANAGER = "0x4444444444444444444444444444444444444444"
HINT_HELPERS = "0x5555555555555555555555555555555555555555"
VAULT = "0x6666666666666666666666666666666666666666"
HINT = "0x7777777777777777777777777777777777777777"


@pytest.mark.parametrize(
    "n,expected", [(0, 1), (1, 15), (100, 150), (10_000, 1500), (2, 22), (3, 26)]
)
def test_num_trials(n, expected):
    assert num_trials(n) == expected


def test_num_trials_rejects_negative():
    with pytest.raises(ValueError):
        num_trials(-1)


def test_degraded_hints():
    assert TroveHints(ZERO_ADDRESS).degraded is True
    assert TroveHints(HINT).degraded is False
    assert TroveHints(HINT).lower_hint == ZERO_ADDRESS


class TestFindTroveHints:
    @pytest.fixture
    def hint_ledger(self, fake_ledger):
        fake_ledger.on_read("getTroveOwnersCount", 100, address=TROVE_MANAGER)
        fake_ledger.on_read("decimals", 18, address=VAULT)
        fake_ledger.on_read("computeNominalCR", 42 * 10**18, address=HINT_HELPERS)
        fake_ledger.on_read(
            "getApproxHint", lambda _a, args: (HINT, 7, args[3] + 1), address=HINT_HELPERS
        )
        return fake_ledger

    @pytest.mark.asyncio
    async def test_approx_hint_uses_seeded_rng(self, hint_ledger):
        hints = await find_trove_hints(
            hint_ledger,
            trove_manager=TROVE_MANAGER,
            hint_helpers=HINT_HELPERS,
            collateral=VAULT,
            collateral_amount=10**18,
            debt=500 * 10**18,
            rng=random.Random(7),
        )

        assert hints == TroveHints(upper_hint=HINT, lower_hint=ZERO_ADDRESS)
        (approx_hint,) = hint_ledger.read_calls("getApproxHint")
        expected_seed = random.Random(7).randrange(1_000_000)
        assert approx_hint.args == (VAULT, 42 * 10**18, 150, expected_seed)
        (nicr,) = hint_ledger.read_calls("computeNominalCR")
        assert nicr.args == (10**18, 500 * 10**18, 18)
        assert hint_ledger.transactions == []

    @pytest.mark.asyncio
    async def test_read_failure_degrades_to_zero_hints(self, hint_ledger):
        def boom(_address, _args):
            raise FakeRevert("execution reverted")

        hint_ledger.on_read("getApproxHint", boom, address=HINT_HELPERS)
        hints = await find_trove_hints(
            hint_ledger,
            trove_manager=TROVE_MANAGER,
            hint_helpers=HINT_HELPERS,
            collateral=VAULT,
            collateral_amount=1,
            debt=1,
            rng=random.Random(0),
        )
        assert hints.degraded
        assert hints.lower_hint == ZERO_ADDRESS
