from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, is_dataclass
from decimal import Decimal
from typing import Any

import pydantic
from loguru import logger

from midas_paths.adapters.ironclad_adapter.adapter import IroncladAdapter
from midas_paths.adapters.kim_adapter.adapter import KimAdapter
from midas_paths.adapters.mode_voting_adapter.adapter import ModeVotingAdapter
from midas_paths.adapters.token_adapter.adapter import TokenAdapter
from midas_paths.core.errors import MidasError
from midas_paths.core.ledger import LedgerClient
from midas_paths.tools import parameters as p

Handler = Callable[[Any], Awaitable[Any]]


def ok(result: Any) -> dict[str, Any]:
    return {"ok": True, "result": result}


def err(code: str, message: str, details: Any | None = None) -> dict[str, Any]:
    return {
        "ok": False,
        "error": {"code": str(code), "message": str(message), "details": details},
    }


def to_jsonable(value: Any) -> Any:
    """Amounts become strings so uint256 values survive JSON round trips."""
    if isinstance(value, bool) or value is None or isinstance(value, str | float):
        return value
    if isinstance(value, int | Decimal):
        return str(value)
    if hasattr(value, "to_dict"):
        return to_jsonable(value.to_dict())
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(vars(value))
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_jsonable(v) for v in value]
    return str(value)


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params_model: type[pydantic.BaseModel]
    handler: Handler

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.params_model.model_json_schema(),
        }


class ToolRegistry:
    """Explicit name -> tool dispatch table, built once at startup."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(
        self,
        name: str,
        params_model: type[pydantic.BaseModel],
        handler: Handler,
        description: str,
    ) -> Tool:
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")
        tool = Tool(name, description, params_model, handler)
        self._tools[name] = tool
        return tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def describe(self) -> list[dict[str, Any]]:
        return [self._tools[name].describe() for name in self.names()]

    async def execute(
        self, name: str, raw_params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        tool = self._tools.get(name)
        if tool is None:
            return err("unknown_tool", f"Unknown tool: {name}", {"available": self.names()})

        try:
            params = tool.params_model.model_validate(dict(raw_params or {}))
        except pydantic.ValidationError as exc:
            details = [
                {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                for e in exc.errors(include_url=False)
            ]
            return err("validation_error", f"Invalid parameters for {name}", details)

        log = logger.bind(tool=name)
        log.info(f"Executing {name}")
        try:
            result = await tool.handler(params)
        except MidasError as exc:
            log.warning(f"{name} failed: {exc}")
            return err(
                exc.code,
                str(exc),
                {"operation": exc.operation, **_details_dict(exc.details)},
            )
        return ok(to_jsonable(result))


def _details_dict(details: Any) -> dict[str, Any]:
    if details is None:
        return {}
    if isinstance(details, Mapping):
        return {str(k): to_jsonable(v) for k, v in details.items()}
    return {"details": to_jsonable(details)}


@dataclass
class ToolContext:
    ironclad: IroncladAdapter
    kim: KimAdapter
    mode_voting: ModeVotingAdapter
    token: TokenAdapter

    @classmethod
    def from_ledger(
        cls,
        ledger: LedgerClient,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int | None = None,
    ) -> ToolContext:
        config = config or {}
        return cls(
            ironclad=IroncladAdapter(ledger, config.get("ironclad"), chain_id=chain_id),
            kim=KimAdapter(ledger, config.get("kim"), chain_id=chain_id),
            mode_voting=ModeVotingAdapter(
                ledger, config.get("mode_voting"), chain_id=chain_id
            ),
            token=TokenAdapter(ledger, config.get("token"), chain_id=chain_id),
        )


def build_registry(ctx: ToolContext) -> ToolRegistry:
    reg = ToolRegistry()
    ironclad, kim, voting, token = ctx.ironclad, ctx.kim, ctx.mode_voting, ctx.token

    # Ironclad lending
    async def lending_pool_address(_: p.EmptyParams) -> Any:
        return await ironclad.get_lending_pool_address()

    async def borrower_address(_: p.EmptyParams) -> Any:
        return await ironclad.get_borrower_address()

    async def deposit(params: p.LendingAmountParams) -> Any:
        return await ironclad.deposit(params.asset, params.amount, params.referral_code)

    async def borrow(params: p.LendingAmountParams) -> Any:
        return await ironclad.borrow(params.asset, params.amount, params.referral_code)

    async def withdraw(params: p.OptionalAmountParams) -> Any:
        return await ironclad.withdraw(params.asset, params.amount)

    async def repay(params: p.OptionalAmountParams) -> Any:
        return await ironclad.repay(params.asset, params.amount)

    async def loop_deposit(params: p.LoopDepositParams) -> Any:
        return await ironclad.loop_deposit(
            params.asset, params.initial_amount, params.num_loops, params.referral_code
        )

    async def loop_withdraw(params: p.AssetParams) -> Any:
        result = await ironclad.loop_withdraw(params.asset)
        return {"message": result.message, "loops": result.loops, "swept": result.swept}

    async def max_withdrawable(params: p.AssetParams) -> Any:
        return await ironclad.calculate_max_withdrawable(params.asset)

    async def monitor_loop(params: p.MonitorPositionParams) -> Any:
        return await ironclad.monitor_loop_position(params.asset, params.user)

    async def monitor_lending(params: p.MonitorPositionParams) -> Any:
        return await ironclad.monitor_lending_position(params.asset, params.user)

    reg.register("ironclad_get_lending_pool_address", p.EmptyParams, lending_pool_address,
                 "Address of the Ironclad lending pool.")
    reg.register("ironclad_get_borrower_address", p.EmptyParams, borrower_address,
                 "Address of the Ironclad BorrowerOperations contract.")
    reg.register("ironclad_deposit", p.LendingAmountParams, deposit,
                 "Deposit an asset into the Ironclad lending pool.")
    reg.register("ironclad_borrow", p.LendingAmountParams, borrow,
                 "Borrow an asset from Ironclad at the variable rate.")
    reg.register("ironclad_withdraw", p.OptionalAmountParams, withdraw,
                 "Withdraw a deposit; omit amount to withdraw everything.")
    reg.register("ironclad_repay", p.OptionalAmountParams, repay,
                 "Repay variable debt; omit amount to repay all of it.")
    reg.register("ironclad_loop_deposit", p.LoopDepositParams, loop_deposit,
                 "Open a leveraged position by looping deposit and borrow 1-5 times.")
    reg.register("ironclad_loop_withdraw", p.AssetParams, loop_withdraw,
                 "Unwind a leveraged position by alternating withdraw and repay.")
    reg.register("ironclad_calculate_max_withdrawable", p.AssetParams, max_withdrawable,
                 "Largest withdrawal that keeps the health factor at or above 1.")
    reg.register("ironclad_monitor_loop_position", p.MonitorPositionParams, monitor_loop,
                 "Collateral, debt, LTV and health factor of a looped position.")
    reg.register("ironclad_monitor_lending_position", p.MonitorPositionParams,
                 monitor_lending, "Deposit, debt and borrowing headroom for an asset.")

    # Ironclad troves
    async def get_ic_vault(params: p.TroveTokenParams) -> Any:
        return ironclad.get_ic_vault(params.token)

    async def borrow_iusd(params: p.BorrowIusdParams) -> Any:
        return await ironclad.borrow_iusd(
            params.token, params.token_amount, params.iusd_amount, params.max_fee_percentage
        )

    async def repay_iusd(params: p.TroveTokenParams) -> Any:
        return await ironclad.repay_iusd(params.token)

    async def monitor_trove(params: p.MonitorTroveParams) -> Any:
        return await ironclad.monitor_trove(params.token, params.user)

    reg.register("ironclad_get_ic_vault", p.TroveTokenParams, get_ic_vault,
                 "icVault address used as trove collateral for a token.")
    reg.register("ironclad_borrow_iusd", p.BorrowIusdParams, borrow_iusd,
                 "Open a trove: deposit collateral into its icVault and mint iUSD.")
    reg.register("ironclad_repay_iusd", p.TroveTokenParams, repay_iusd,
                 "Close a trove and redeem the icVault shares.")
    reg.register("ironclad_monitor_trove", p.MonitorTroveParams, monitor_trove,
                 "Status, collateral and debt of a trove.")

    # KIM
    async def swap_router_address(_: p.EmptyParams) -> Any:
        return await kim.get_swap_router_address()

    async def get_pool(params: p.PoolParams) -> Any:
        return await kim.get_pool(params.token_a, params.token_b)

    async def get_position(params: p.TokenIdParams) -> Any:
        return await kim.get_position(params.token_id)

    async def get_pool_state(params: p.PoolStateParams) -> Any:
        return await kim.get_pool_state(params.pool)

    async def get_lp_tokens(params: p.LpTokensParams) -> Any:
        return await kim.get_lp_tokens(params.owner)

    async def mint_position(params: p.MintPositionParams) -> Any:
        return await kim.mint_position(
            params.token0, params.token1, params.amount0, params.amount1,
            params.risk_level, params.deadline_seconds,
        )

    async def increase_liquidity(params: p.IncreaseLiquidityParams) -> Any:
        return await kim.increase_liquidity(
            params.token_id, params.token0, params.token1, params.amount0,
            params.amount1, params.deadline_seconds,
        )

    async def decrease_liquidity(params: p.DecreaseLiquidityParams) -> Any:
        return await kim.decrease_liquidity(
            params.token_id, params.percentage, params.deadline_seconds
        )

    async def collect(params: p.TokenIdParams) -> Any:
        return await kim.collect(params.token_id)

    async def burn(params: p.TokenIdParams) -> Any:
        return await kim.burn(params.token_id)

    async def swap_in_single(params: p.SwapExactInputSingleParams) -> Any:
        return await kim.swap_exact_input_single(
            params.token_in, params.token_out, params.amount_in,
            params.amount_out_minimum, params.limit_sqrt_price, params.deadline_seconds,
        )

    async def swap_out_single(params: p.SwapExactOutputSingleParams) -> Any:
        return await kim.swap_exact_output_single(
            params.token_in, params.token_out, params.amount_out,
            params.amount_in_maximum, params.limit_sqrt_price, params.deadline_seconds,
        )

    async def swap_in_multi(params: p.SwapExactInputMultiHopParams) -> Any:
        return await kim.swap_exact_input_multi_hop(
            params.path, params.amount_in, params.amount_out_minimum,
            params.deadline_seconds,
        )

    async def swap_out_multi(params: p.SwapExactOutputMultiHopParams) -> Any:
        return await kim.swap_exact_output_multi_hop(
            params.path, params.amount_out, params.amount_in_maximum,
            params.deadline_seconds,
        )

    async def position_apy(params: p.PositionApyParams) -> Any:
        return await kim.calculate_position_apy(params.token_id, params.days_elapsed)

    reg.register("kim_get_swap_router_address", p.EmptyParams, swap_router_address,
                 "Address of the KIM swap router.")
    reg.register("kim_get_pool", p.PoolParams, get_pool,
                 "Pool address for a token pair.")
    reg.register("kim_get_position", p.TokenIdParams, get_position,
                 "Liquidity and fee growth snapshot of a position NFT.")
    reg.register("kim_get_pool_state", p.PoolStateParams, get_pool_state,
                 "Current sqrt price and fee growth accumulators of a pool.")
    reg.register("kim_get_lp_tokens", p.LpTokensParams, get_lp_tokens,
                 "Position NFTs held by an owner.")
    reg.register("kim_mint_position", p.MintPositionParams, mint_position,
                 "Mint a concentrated liquidity position sized by the KIM calculator.")
    reg.register("kim_increase_liquidity", p.IncreaseLiquidityParams, increase_liquidity,
                 "Add liquidity to an existing position.")
    reg.register("kim_decrease_liquidity", p.DecreaseLiquidityParams, decrease_liquidity,
                 "Remove a percentage of a position's liquidity.")
    reg.register("kim_collect", p.TokenIdParams, collect,
                 "Collect all owed tokens from a position.")
    reg.register("kim_burn", p.TokenIdParams, burn,
                 "Burn an empty position NFT.")
    reg.register("kim_swap_exact_input_single", p.SwapExactInputSingleParams,
                 swap_in_single, "Swap an exact input amount through one pool.")
    reg.register("kim_swap_exact_output_single", p.SwapExactOutputSingleParams,
                 swap_out_single, "Swap for an exact output amount through one pool.")
    reg.register("kim_swap_exact_input_multi_hop", p.SwapExactInputMultiHopParams,
                 swap_in_multi, "Swap an exact input amount along a token path.")
    reg.register("kim_swap_exact_output_multi_hop", p.SwapExactOutputMultiHopParams,
                 swap_out_multi, "Swap for an exact output amount along a token path.")
    reg.register("kim_calculate_position_apy", p.PositionApyParams, position_apy,
                 "Fees earned and annualized yield of a position.")

    # Mode voting
    async def all_gauges(params: p.VoterTypeParams) -> Any:
        return await voting.get_all_gauges(params.voter_type)

    async def gauge_info(params: p.GaugeInfoParams) -> Any:
        return await voting.get_gauge_info(
            params.voter_type, params.identifier, params.by_address
        )

    async def vote(params: p.VoteParams) -> Any:
        return await voting.vote(
            params.voter_type, params.token_id, [v.model_dump() for v in params.votes]
        )

    async def change_votes(params: p.VoteParams) -> Any:
        return await voting.change_votes(
            params.voter_type, params.token_id, [v.model_dump() for v in params.votes]
        )

    async def voting_power(params: p.VotingPowerParams) -> Any:
        return await voting.get_voting_power(params.voter_type, params.token_id)

    reg.register("mode_get_all_gauges", p.VoterTypeParams, all_gauges,
                 "List veMODE or veBPT gauges with their votes.")
    reg.register("mode_get_gauge_info", p.GaugeInfoParams, gauge_info,
                 "Details of one gauge, looked up by name or address.")
    reg.register("mode_vote", p.VoteParams, vote,
                 "Vote on gauges with a veNFT; weights must sum to 100.")
    reg.register("mode_change_votes", p.VoteParams, change_votes,
                 "Reset existing votes and vote again.")
    reg.register("mode_get_voting_power", p.VotingPowerParams, voting_power,
                 "Total, used and remaining voting power of a veNFT.")

    # ERC20
    async def balance(params: p.TokenBalanceParams) -> Any:
        return await token.get_balance(params.token, params.wallet)

    async def allowance(params: p.AllowanceParams) -> Any:
        return await token.get_allowance(params.token, params.spender, params.owner)

    async def approve(params: p.ApproveParams) -> Any:
        return await token.approve(params.token, params.spender, params.amount)

    async def revoke(params: p.RevokeApprovalParams) -> Any:
        return await token.revoke_approval(params.token, params.spender)

    async def transfer(params: p.TransferParams) -> Any:
        return await token.transfer(params.token, params.to, params.amount)

    async def to_base(params: p.ConvertToBaseUnitsParams) -> Any:
        return await token.convert_to_base_units(params.token, params.amount_human)

    async def from_base(params: p.ConvertFromBaseUnitsParams) -> Any:
        return await token.convert_from_base_units(params.token, params.amount)

    reg.register("token_get_balance", p.TokenBalanceParams, balance,
                 "Token balance with a best-effort USD value.")
    reg.register("token_get_allowance", p.AllowanceParams, allowance,
                 "Allowance granted by an owner to a spender.")
    reg.register("token_approve", p.ApproveParams, approve,
                 "Approve a spender for an exact amount.")
    reg.register("token_revoke_approval", p.RevokeApprovalParams, revoke,
                 "Set a spender's allowance to zero.")
    reg.register("token_transfer", p.TransferParams, transfer,
                 "Transfer tokens to another address.")
    reg.register("token_convert_to_base_units", p.ConvertToBaseUnitsParams, to_base,
                 "Convert a human-readable amount to base units.")
    reg.register("token_convert_from_base_units", p.ConvertFromBaseUnitsParams,
                 from_base, "Convert base units to a human-readable amount.")

    return reg
