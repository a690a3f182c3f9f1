"""Solvency math for Aave-v2 style reserves.

All functions are pure. Amounts are raw token integers and risk parameters are
basis points, so every comparison that decides solvency stays in integer
arithmetic; ``Decimal`` only appears in the human-readable ratios.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, localcontext

from midas_paths.core.constants.base import BPS_DENOMINATOR, PERCENT
from midas_paths.core.utils.units import checked_uint

INFINITE_HEALTH_FACTOR = Decimal("Infinity")
INFINITE_LOAN_TO_VALUE = Decimal("Infinity")
INFINITY_SYMBOL = "∞"
_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class ReserveSnapshot:
    collateral_balance: int
    stable_debt: int = 0
    variable_debt: int = 0

    def __post_init__(self) -> None:
        checked_uint(self.collateral_balance, name="collateral_balance")
        checked_uint(self.stable_debt, name="stable_debt")
        checked_uint(self.variable_debt, name="variable_debt")

    @property
    def total_debt(self) -> int:
        return checked_uint(self.stable_debt + self.variable_debt, name="total_debt")

    @classmethod
    def from_user_reserve_data(cls, data: Sequence) -> ReserveSnapshot:
        # getUserReserveData: (aTokenBalance, stableDebt, variableDebt, ...)
        return cls(
            collateral_balance=int(data[0]),
            stable_debt=int(data[1]),
            variable_debt=int(data[2]),
        )


@dataclass(frozen=True)
class ReserveConfig:
    ltv_bps: int
    liquidation_threshold_bps: int

    def __post_init__(self) -> None:
        if not 0 <= self.ltv_bps <= self.liquidation_threshold_bps <= BPS_DENOMINATOR:
            raise ValueError(
                "expected 0 <= ltv_bps <= liquidation_threshold_bps <= 10000, got "
                f"ltv_bps={self.ltv_bps} "
                f"liquidation_threshold_bps={self.liquidation_threshold_bps}"
            )

    @classmethod
    def from_reserve_configuration_data(cls, data: Sequence) -> ReserveConfig:
        # getReserveConfigurationData: (decimals, ltv, liquidationThreshold, ...)
        return cls(ltv_bps=int(data[1]), liquidation_threshold_bps=int(data[2]))


def loan_to_value(snapshot: ReserveSnapshot) -> Decimal:
    """Debt as a percentage of collateral, truncated to two places.

    Debt against an empty reserve (borrowed with other collateral) is
    ``Decimal('Infinity')``.
    """
    debt = snapshot.total_debt
    if debt == 0:
        return Decimal(0)
    if snapshot.collateral_balance == 0:
        return INFINITE_LOAN_TO_VALUE
    with localcontext() as ctx:
        ctx.prec = 96
        ratio = Decimal(debt) * PERCENT / Decimal(snapshot.collateral_balance)
        return ratio.quantize(_TWO_PLACES, rounding=ROUND_DOWN)


def health_factor(snapshot: ReserveSnapshot, config: ReserveConfig) -> Decimal:
    """Risk-adjusted collateral over debt; ``Decimal('Infinity')`` without debt."""
    debt = snapshot.total_debt
    if debt == 0:
        return INFINITE_HEALTH_FACTOR
    with localcontext() as ctx:
        ctx.prec = 96
        return (
            Decimal(snapshot.collateral_balance)
            * config.liquidation_threshold_bps
            / (Decimal(debt) * BPS_DENOMINATOR)
        )


def format_health_factor(value: Decimal) -> str:
    if value.is_infinite():
        return INFINITY_SYMBOL
    return str(value.quantize(_TWO_PLACES, rounding=ROUND_DOWN))


def format_loan_to_value(value: Decimal) -> str:
    if value.is_infinite():
        return f"{INFINITY_SYMBOL}%"
    return f"{value}%"


def min_required_collateral(debt: int, liquidation_threshold_bps: int) -> int:
    if debt == 0:
        return 0
    if liquidation_threshold_bps == 0:
        raise ValueError(
            "liquidation threshold is 0, the asset cannot be used as collateral"
        )
    # Rounded up so that collateral == result always gives health factor >= 1.
    return -(-debt * BPS_DENOMINATOR // liquidation_threshold_bps)


def max_withdrawable(snapshot: ReserveSnapshot, config: ReserveConfig) -> int:
    """Largest withdrawal that keeps the health factor at or above 1.0.

    Returns the full collateral balance when there is no debt and 0 when the
    position is already at or below the minimum collateral for its debt.
    """
    debt = snapshot.total_debt
    collateral = snapshot.collateral_balance
    if debt == 0:
        return collateral
    required = min_required_collateral(debt, config.liquidation_threshold_bps)
    if collateral <= required:
        return 0
    return collateral - required


def available_to_borrow(snapshot: ReserveSnapshot, config: ReserveConfig) -> int:
    capacity = snapshot.collateral_balance * config.ltv_bps // BPS_DENOMINATOR
    return max(0, capacity - snapshot.total_debt)


def borrow_amount_for(amount: int, config: ReserveConfig) -> int:
    return checked_uint(amount, name="amount") * config.ltv_bps // BPS_DENOMINATOR
