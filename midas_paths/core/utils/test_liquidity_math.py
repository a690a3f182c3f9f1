from decimal import Decimal

import pytest

from midas_paths.core.constants.base import Q96, Q128
from midas_paths.core.utils.liquidity_math import (
    LiquidityPosition,
    PoolState,
    fees_earned,
    position_apy,
    position_value,
    price_from_sqrt_price_x96,
)

TOKEN0 = "0x1111111111111111111111111111111111111111"
TOKEN1 = "0x3333333333333333333333333333333333333333"


def make_position(liquidity=10**18, fee0=0, fee1=0):
    return LiquidityPosition(
        token_id=1,
        token0=TOKEN0,
        token1=TOKEN1,
        liquidity=liquidity,
        fee_growth_inside0_last=fee0,
        fee_growth_inside1_last=fee1,
    )


class TestFeesEarned:
    def test_scales_by_q128_and_decimals(self):
        # one full token of fees per unit of liquidity
        assert fees_earned(Q128 * 10**6, 0, 1, 6) == Decimal(1)

    def test_no_truncation_before_scaling(self):
        # delta * liquidity / 2**128 is fractional in raw units
        value = fees_earned(Q128 // 2, 0, 3, 0)
        assert value == Decimal("1.5")

    def test_accumulator_wraparound(self):
        last = (1 << 256) - 10
        assert fees_earned(5, last, Q128, 0) == Decimal(15)

    def test_monotonic_in_current_fee_growth(self):
        liquidity, last = 987_654_321, 12_345
        previous = None
        for current in range(last, last + 50 * Q128, Q128 // 3):
            value = fees_earned(current, last, liquidity, 18)
            if previous is not None:
                assert value >= previous
            previous = value


class TestPrice:
    def test_price_from_sqrt_price(self):
        assert price_from_sqrt_price_x96(Q96) == Decimal(1)
        assert price_from_sqrt_price_x96(2 * Q96) == Decimal(4)

    def test_position_value_zero_for_empty_inputs(self):
        assert position_value(0, Decimal(1), 18, 18) == 0
        assert position_value(10**18, Decimal(0), 18, 18) == 0

    def test_position_value_formula(self):
        # liquidity / sqrt(4) + liquidity * sqrt(4) * 4, scaled to whole tokens
        value = position_value(10**18, Decimal(4), 18, 18)
        assert value == Decimal("0.5") + Decimal(8)


class TestPositionApy:
    def test_known_position(self):
        position = make_position(liquidity=10**18)
        pool = PoolState(
            sqrt_price_x96=Q96,
            current_fee_growth0=Q128 // 10,
            current_fee_growth1=Q128 // 10,
        )
        result = position_apy(position, pool, 18, 18, days_elapsed=365)

        assert result.computable
        assert result.price == Decimal(1)
        assert result.position_value == Decimal(2)
        assert result.fees_earned0 == pytest.approx(Decimal("0.1"))
        # 0.2 tokens earned over a year on a value of 2 is 10%
        assert result.apy == pytest.approx(Decimal(10))

    def test_defaults_to_a_year(self):
        pool = PoolState(Q96, Q128 // 10, 0)
        result = position_apy(make_position(), pool, 18, 18)
        assert result.days_elapsed == 365

    def test_shorter_window_annualizes(self):
        pool = PoolState(Q96, Q128 // 10, Q128 // 10)
        yearly = position_apy(make_position(), pool, 18, 18, days_elapsed=365)
        monthly = position_apy(make_position(), pool, 18, 18, days_elapsed=36.5)
        assert monthly.apy == pytest.approx(yearly.apy * 10)

    @pytest.mark.parametrize("days", [0, -1])
    def test_non_positive_days_not_computable(self, days):
        pool = PoolState(Q96, Q128, Q128)
        result = position_apy(make_position(), pool, 18, 18, days_elapsed=days)
        assert result.apy is None
        assert not result.computable
        assert "days_elapsed" in result.reason

    def test_zero_value_not_computable(self):
        pool = PoolState(Q96, Q128, Q128)
        result = position_apy(make_position(liquidity=0), pool, 18, 18)
        assert result.apy is None
        assert result.reason == "position value is zero"
        assert result.to_dict()["apy_computable"] is False

    def test_rejects_liquidity_wider_than_uint128(self):
        with pytest.raises(OverflowError):
            make_position(liquidity=1 << 128)

    def test_from_positions_tuple(self):
        raw = (0, TOKEN0, TOKEN0, TOKEN1, -60, 60, 5000, 11, 22, 0, 0)
        position = LiquidityPosition.from_positions(9, raw)
        assert position.liquidity == 5000
        assert position.fee_growth_inside0_last == 11
        assert position.fee_growth_inside1_last == 22
        assert position.token1 == TOKEN1
