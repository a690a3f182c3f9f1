"""Fee and yield math for concentrated-liquidity (Algebra) positions.

Fee growth accumulators are Q128 fixed point and wrap like uint256 on-chain,
so deltas are taken modulo 2**256. Integer products are formed before any
division; ``Decimal`` carries the result from there.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, getcontext
from typing import Any

from eth_utils import to_checksum_address

from midas_paths.core.constants.base import DAYS_PER_YEAR, PERCENT, Q96, Q128
from midas_paths.core.utils.units import checked_uint

getcontext().prec = 64

MASK_256 = (1 << 256) - 1


@dataclass(frozen=True)
class LiquidityPosition:
    token_id: int
    token0: str
    token1: str
    liquidity: int
    fee_growth_inside0_last: int
    fee_growth_inside1_last: int

    def __post_init__(self) -> None:
        checked_uint(self.liquidity, 128, "liquidity")
        checked_uint(self.fee_growth_inside0_last, name="fee_growth_inside0_last")
        checked_uint(self.fee_growth_inside1_last, name="fee_growth_inside1_last")

    @classmethod
    def from_positions(cls, token_id: int, raw: Sequence[Any]) -> LiquidityPosition:
        # positions(): (nonce, operator, token0, token1, tickLower, tickUpper,
        #               liquidity, feeGrowthInside0, feeGrowthInside1, owed0, owed1)
        return cls(
            token_id=int(token_id),
            token0=to_checksum_address(raw[2]),
            token1=to_checksum_address(raw[3]),
            liquidity=int(raw[6]),
            fee_growth_inside0_last=int(raw[7]),
            fee_growth_inside1_last=int(raw[8]),
        )


@dataclass(frozen=True)
class PoolState:
    sqrt_price_x96: int
    current_fee_growth0: int
    current_fee_growth1: int

    def __post_init__(self) -> None:
        checked_uint(self.sqrt_price_x96, 160, "sqrt_price_x96")
        checked_uint(self.current_fee_growth0, name="current_fee_growth0")
        checked_uint(self.current_fee_growth1, name="current_fee_growth1")


@dataclass(frozen=True)
class PositionYield:
    fees_earned0: Decimal
    fees_earned1: Decimal
    price: Decimal
    position_value: Decimal
    days_elapsed: Decimal
    apy: Decimal | None
    reason: str | None = None

    @property
    def computable(self) -> bool:
        return self.apy is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "apy": float(self.apy) if self.apy is not None else None,
            "apy_computable": self.computable,
            "reason": self.reason,
            "fees_earned": {
                "token0_amount": str(self.fees_earned0),
                "token1_amount": str(self.fees_earned1),
            },
            "price": str(self.price),
            "position_value": str(self.position_value),
            "days_elapsed": str(self.days_elapsed),
        }


def fees_earned(
    current_fee_growth: int, last_fee_growth: int, liquidity: int, decimals: int
) -> Decimal:
    delta = (current_fee_growth - last_fee_growth) & MASK_256
    raw = Decimal(delta * liquidity) / Decimal(Q128)
    return raw.scaleb(-int(decimals))


def price_from_sqrt_price_x96(sqrt_price_x96: int) -> Decimal:
    """Token1 per token0 in raw units."""
    return (Decimal(sqrt_price_x96) / Decimal(Q96)) ** 2


def position_value(
    liquidity: int, price: Decimal, decimals0: int, decimals1: int
) -> Decimal:
    """Position value in token0 terms; zero when price or liquidity is zero."""
    if liquidity == 0 or price <= 0:
        return Decimal(0)
    sqrt_price = price.sqrt()
    amount0 = (Decimal(liquidity) / sqrt_price).scaleb(-int(decimals0))
    amount1 = (Decimal(liquidity) * sqrt_price).scaleb(-int(decimals1))
    return amount0 + amount1 * price


def position_apy(
    position: LiquidityPosition,
    pool: PoolState,
    decimals0: int,
    decimals1: int,
    days_elapsed: int | float | Decimal | None = None,
) -> PositionYield:
    fees0 = fees_earned(
        pool.current_fee_growth0,
        position.fee_growth_inside0_last,
        position.liquidity,
        decimals0,
    )
    fees1 = fees_earned(
        pool.current_fee_growth1,
        position.fee_growth_inside1_last,
        position.liquidity,
        decimals1,
    )
    price = price_from_sqrt_price_x96(pool.sqrt_price_x96)
    value = position_value(position.liquidity, price, decimals0, decimals1)
    days = Decimal(DAYS_PER_YEAR) if days_elapsed is None else Decimal(str(days_elapsed))

    reason = None
    if days <= 0:
        reason = "days_elapsed must be positive"
    elif value <= 0:
        reason = "position value is zero"
    if reason is not None:
        return PositionYield(fees0, fees1, price, value, days, None, reason)

    daily_fees = (fees0 + fees1 * price) / days
    apy = daily_fees * DAYS_PER_YEAR / value * PERCENT
    return PositionYield(fees0, fees1, price, value, days, apy)
