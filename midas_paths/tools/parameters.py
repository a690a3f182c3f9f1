"""Validated parameter models for every tool.

Token amounts cross this boundary as integer strings in the token's base
units (wei for 18-decimal tokens). Human-readable amounts are only accepted
by ``convert_to_base_units``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from eth_utils import is_address
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    WithJsonSchema,
    model_validator,
)

from midas_paths.core.constants.base import (
    DEFAULT_DEADLINE_SECONDS,
    DEFAULT_MAX_FEE_PERCENTAGE,
    DEFAULT_REFERRAL_CODE,
    MAX_UINT256,
)
from midas_paths.core.constants.mode_voting_contracts import TOTAL_VOTE_WEIGHT


def _parse_base_units(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("expected an integer amount in base units")
    if isinstance(value, int):
        raw = value
    elif isinstance(value, str) and value.strip().isdigit():
        raw = int(value.strip())
    else:
        raise ValueError("expected a non-negative integer string in base units")
    if raw < 0 or raw > MAX_UINT256:
        raise ValueError("amount does not fit in uint256")
    return raw


def _check_address(value: str) -> str:
    value = value.strip()
    if not is_address(value):
        raise ValueError(f"invalid address: {value}")
    return value


BaseUnits = Annotated[
    int,
    BeforeValidator(_parse_base_units),
    WithJsonSchema(
        {
            "type": "string",
            "pattern": "^[0-9]+$",
            "description": "Integer amount in token base units",
        }
    ),
]
Address = Annotated[str, AfterValidator(_check_address)]
VoterType = Literal["veMODE", "veBPT"]
DeadlineSeconds = Annotated[int, Field(gt=0, description="Seconds from now")]


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# Ironclad lending


class AssetParams(ToolParams):
    asset: Address = Field(..., description="Reserve asset address")


class MonitorPositionParams(AssetParams):
    user: Address | None = Field(default=None, description="Defaults to the caller")


class LendingAmountParams(AssetParams):
    amount: BaseUnits
    referral_code: int = Field(default=DEFAULT_REFERRAL_CODE, ge=0, le=65535)


class OptionalAmountParams(AssetParams):
    amount: BaseUnits | None = Field(
        default=None, description="Omit to use the full balance or debt"
    )


class LoopDepositParams(AssetParams):
    initial_amount: BaseUnits
    num_loops: int = Field(default=2, ge=1, le=5)
    referral_code: int = Field(default=DEFAULT_REFERRAL_CODE, ge=0, le=65535)

    @model_validator(mode="after")
    def _positive_initial_amount(self) -> LoopDepositParams:
        if self.initial_amount <= 0:
            raise ValueError("initial_amount must be positive")
        return self


# Ironclad troves


class TroveTokenParams(ToolParams):
    token: Address = Field(..., description="Collateral token with an icVault")


class MonitorTroveParams(TroveTokenParams):
    user: Address | None = None


class BorrowIusdParams(TroveTokenParams):
    token_amount: BaseUnits
    iusd_amount: BaseUnits
    max_fee_percentage: BaseUnits = Field(
        default=DEFAULT_MAX_FEE_PERCENTAGE, description="1e18 = 100%"
    )


# KIM


class PoolParams(ToolParams):
    token_a: Address
    token_b: Address


class PoolStateParams(ToolParams):
    pool: Address


class TokenIdParams(ToolParams):
    token_id: BaseUnits


class LpTokensParams(ToolParams):
    owner: Address | None = None


class PositionApyParams(TokenIdParams):
    days_elapsed: float | None = Field(
        default=None, description="Days since the position was opened; defaults to 365"
    )


class MintPositionParams(ToolParams):
    token0: Address
    token1: Address
    amount0: BaseUnits
    amount1: BaseUnits
    risk_level: int = Field(..., ge=0, le=255)
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


class IncreaseLiquidityParams(TokenIdParams):
    token0: Address
    token1: Address
    amount0: BaseUnits
    amount1: BaseUnits
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


class DecreaseLiquidityParams(TokenIdParams):
    percentage: int = Field(..., gt=0, le=100)
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


class SwapExactInputSingleParams(ToolParams):
    token_in: Address
    token_out: Address
    amount_in: BaseUnits
    amount_out_minimum: BaseUnits = 0
    limit_sqrt_price: BaseUnits = 0
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


class SwapExactOutputSingleParams(ToolParams):
    token_in: Address
    token_out: Address
    amount_out: BaseUnits
    amount_in_maximum: BaseUnits
    limit_sqrt_price: BaseUnits = 0
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


class SwapExactInputMultiHopParams(ToolParams):
    path: list[Address] = Field(..., min_length=2, description="token_in ... token_out")
    amount_in: BaseUnits
    amount_out_minimum: BaseUnits = 0
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


class SwapExactOutputMultiHopParams(ToolParams):
    path: list[Address] = Field(..., min_length=2, description="token_in ... token_out")
    amount_out: BaseUnits
    amount_in_maximum: BaseUnits
    deadline_seconds: DeadlineSeconds = DEFAULT_DEADLINE_SECONDS


# Mode voting


class VoterTypeParams(ToolParams):
    voter_type: VoterType


class GaugeInfoParams(VoterTypeParams):
    identifier: str = Field(..., min_length=1, description="Gauge name or address")
    by_address: bool = False


class GaugeVote(ToolParams):
    gauge: str = Field(..., min_length=1, description="Gauge name or address")
    weight: int = Field(..., gt=0, le=TOTAL_VOTE_WEIGHT)
    is_address: bool = False


class VoteParams(VoterTypeParams):
    token_id: BaseUnits
    votes: list[GaugeVote] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _weights_sum(self) -> VoteParams:
        total = sum(v.weight for v in self.votes)
        if total != TOTAL_VOTE_WEIGHT:
            raise ValueError(f"vote weights must sum to {TOTAL_VOTE_WEIGHT}, got {total}")
        return self


class VotingPowerParams(VoterTypeParams):
    token_id: BaseUnits


# ERC20


class TokenBalanceParams(ToolParams):
    token: Address
    wallet: Address | None = None


class AllowanceParams(ToolParams):
    token: Address
    spender: Address
    owner: Address | None = None


class ApproveParams(ToolParams):
    token: Address
    spender: Address
    amount: BaseUnits


class RevokeApprovalParams(ToolParams):
    token: Address
    spender: Address


class TransferParams(ToolParams):
    token: Address
    to: Address
    amount: BaseUnits


class ConvertToBaseUnitsParams(ToolParams):
    token: Address
    amount_human: str = Field(..., min_length=1, description="e.g. '1.5'")


class ConvertFromBaseUnitsParams(ToolParams):
    token: Address
    amount: BaseUnits


class EmptyParams(ToolParams):
    pass
