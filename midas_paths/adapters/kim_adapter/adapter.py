from __future__ import annotations

import time
from typing import Any

from eth_abi.packed import encode_packed
from eth_utils import to_checksum_address

from midas_paths.core.adapters.BaseAdapter import BaseAdapter
from midas_paths.core.adapters.decorators import operation
from midas_paths.core.constants.base import (
    ADAPTER_KIM,
    DEFAULT_DEADLINE_SECONDS,
    MAX_UINT128,
    PERCENT,
)
from midas_paths.core.constants.kim_abi import (
    CALCULATOR_ABI,
    FACTORY_ABI,
    POOL_ABI,
    POSITION_MANAGER_ABI,
    SWAP_ROUTER_ABI,
)
from midas_paths.core.constants.kim_contracts import KIM_BY_CHAIN
from midas_paths.core.errors import ValidationError
from midas_paths.core.ledger import LedgerClient
from midas_paths.core.utils.liquidity_math import (
    LiquidityPosition,
    PoolState,
    PositionYield,
    position_apy,
)
from midas_paths.core.utils.tokens import ensure_allowance, get_token_decimals


def deadline(seconds: int = DEFAULT_DEADLINE_SECONDS) -> int:
    return int(time.time()) + int(seconds)


def sort_tokens(
    token_a: str, token_b: str, amount_a: int = 0, amount_b: int = 0
) -> tuple[str, str, int, int]:
    """Order a pair the way pools store it (lower address first)."""
    if int(token_a, 16) <= int(token_b, 16):
        return token_a, token_b, amount_a, amount_b
    return token_b, token_a, amount_b, amount_a


def encode_path(tokens: list[str]) -> bytes:
    """Algebra router path: tightly packed token addresses, no fee tiers."""
    if len(tokens) < 2:
        raise ValueError("path needs at least two tokens")
    return encode_packed(
        ["address"] * len(tokens), [to_checksum_address(t) for t in tokens]
    )


class KimAdapter(BaseAdapter):
    """KIM concentrated liquidity (Algebra) positions and swaps on Mode."""

    adapter_type = ADAPTER_KIM

    def __init__(
        self,
        ledger: LedgerClient,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int | None = None,
    ) -> None:
        super().__init__("kim_adapter", ledger, config, chain_id=chain_id)
        entry = KIM_BY_CHAIN.get(self.chain_id)
        if entry is None:
            raise ValueError(f"KIM is not deployed on chain {self.chain_id}")
        self.swap_router = to_checksum_address(entry["swap_router"])
        self.position_manager = to_checksum_address(entry["position_manager"])
        self.factory = to_checksum_address(entry["factory"])
        self.calculator = to_checksum_address(entry["calculator"])

    async def get_swap_router_address(self) -> str:
        return self.swap_router

    # ------------------------------------------------------------------ #
    # Reads                                                               #
    # ------------------------------------------------------------------ #

    @operation("get_pool")
    async def get_pool(self, token_a: str, token_b: str) -> str:
        token_a = await self.ledger.resolve_address(token_a)
        token_b = await self.ledger.resolve_address(token_b)
        pool = str(
            await self.ledger.read(
                self.factory, FACTORY_ABI, "poolByPair", (token_a, token_b)
            )
        )
        if int(pool, 16) == 0:
            raise ValidationError("get_pool", f"no pool for {token_a}/{token_b}")
        return to_checksum_address(pool)

    @operation("get_position")
    async def get_position(self, token_id: int) -> LiquidityPosition:
        raw = await self.ledger.read(
            self.position_manager, POSITION_MANAGER_ABI, "positions", (int(token_id),)
        )
        return LiquidityPosition.from_positions(token_id, raw)

    @operation("get_pool_state")
    async def get_pool_state(self, pool: str) -> PoolState:
        global_state = await self.ledger.read(pool, POOL_ABI, "globalState")
        fee_growth0 = await self.ledger.read(pool, POOL_ABI, "totalFeeGrowth0Token")
        fee_growth1 = await self.ledger.read(pool, POOL_ABI, "totalFeeGrowth1Token")
        return PoolState(
            sqrt_price_x96=int(global_state[0]),
            current_fee_growth0=int(fee_growth0),
            current_fee_growth1=int(fee_growth1),
        )

    @operation("get_lp_tokens")
    async def get_lp_tokens(self, owner: str | None = None) -> list[dict[str, Any]]:
        owner = (
            await self.ledger.resolve_address(owner)
            if owner
            else self.ledger.current_address()
        )
        count = int(
            await self.ledger.read(
                self.position_manager, POSITION_MANAGER_ABI, "balanceOf", (owner,)
            )
        )
        tokens: list[dict[str, Any]] = []
        for index in range(count):
            token_id = await self.ledger.read(
                self.position_manager,
                POSITION_MANAGER_ABI,
                "tokenOfOwnerByIndex",
                (owner, index),
            )
            tokens.append({"token_id": str(int(token_id)), "index": index})
        return tokens

    @operation("calculate_position_apy")
    async def calculate_position_apy(
        self, token_id: int, days_elapsed: float | None = None
    ) -> PositionYield:
        position = await self.get_position(token_id)
        pool = await self.get_pool(position.token0, position.token1)
        state = await self.get_pool_state(pool)
        decimals0 = await get_token_decimals(self.ledger, position.token0)
        decimals1 = await get_token_decimals(self.ledger, position.token1)
        result = position_apy(position, state, decimals0, decimals1, days_elapsed)
        if result.computable:
            self.logger.info(f"Position {token_id} APY {result.apy:.4f}%")
        else:
            self.logger.warning(f"Position {token_id} APY not computable: {result.reason}")
        return result

    # ------------------------------------------------------------------ #
    # Liquidity                                                           #
    # ------------------------------------------------------------------ #

    @operation("mint_position")
    async def mint_position(
        self,
        token0: str,
        token1: str,
        amount0: int,
        amount1: int,
        risk_level: int,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        token0 = await self.ledger.resolve_address(token0)
        token1 = await self.ledger.resolve_address(token1)
        if int(amount0) < 0 or int(amount1) < 0 or int(amount0) + int(amount1) == 0:
            raise ValidationError("mint_position", "amounts must be non-negative and not both zero")
        token0, token1, amount0, amount1 = sort_tokens(
            token0, token1, int(amount0), int(amount1)
        )
        pool = await self.get_pool(token0, token1)
        optimal = await self.ledger.read(
            self.calculator,
            CALCULATOR_ABI,
            "calculateOptimalAmounts",
            (pool, amount0, amount1, int(risk_level)),
        )
        opt0, opt1, tick_lower, tick_upper = (int(v) for v in optimal)
        self.logger.info(
            f"Optimal mint for {pool}: amount0={opt0} amount1={opt1} "
            f"ticks=[{tick_lower}, {tick_upper}]"
        )

        await ensure_allowance(
            self.ledger, token_address=token0, spender=self.position_manager, amount=opt0
        )
        await ensure_allowance(
            self.ledger, token_address=token1, spender=self.position_manager, amount=opt1
        )
        params = (
            token0,
            token1,
            tick_lower,
            tick_upper,
            opt0,
            opt1,
            0,
            0,
            self.ledger.current_address(),
            deadline(deadline_seconds),
        )
        return await self.ledger.send_transaction(
            self.position_manager, POSITION_MANAGER_ABI, "mint", (params,)
        )

    @operation("increase_liquidity")
    async def increase_liquidity(
        self,
        token_id: int,
        token0: str,
        token1: str,
        amount0: int,
        amount1: int,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        token0 = await self.ledger.resolve_address(token0)
        token1 = await self.ledger.resolve_address(token1)
        token0, token1, amount0, amount1 = sort_tokens(
            token0, token1, int(amount0), int(amount1)
        )
        await ensure_allowance(
            self.ledger, token_address=token0, spender=self.position_manager, amount=amount0
        )
        await ensure_allowance(
            self.ledger, token_address=token1, spender=self.position_manager, amount=amount1
        )
        params = (int(token_id), amount0, amount1, 0, 0, deadline(deadline_seconds))
        return await self.ledger.send_transaction(
            self.position_manager, POSITION_MANAGER_ABI, "increaseLiquidity", (params,)
        )

    @operation("decrease_liquidity")
    async def decrease_liquidity(
        self,
        token_id: int,
        percentage: int,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        if not 0 < int(percentage) <= PERCENT:
            raise ValidationError("decrease_liquidity", "percentage must be in (0, 100]")
        position = await self.get_position(token_id)
        liquidity = position.liquidity * int(percentage) // PERCENT
        if liquidity == 0:
            raise ValidationError(
                "decrease_liquidity", f"position {token_id} has no liquidity to remove"
            )
        params = (int(token_id), liquidity, 0, 0, deadline(deadline_seconds))
        return await self.ledger.send_transaction(
            self.position_manager, POSITION_MANAGER_ABI, "decreaseLiquidity", (params,)
        )

    @operation("collect")
    async def collect(self, token_id: int) -> str:
        params = (int(token_id), self.ledger.current_address(), MAX_UINT128, MAX_UINT128)
        return await self.ledger.send_transaction(
            self.position_manager, POSITION_MANAGER_ABI, "collect", (params,)
        )

    @operation("burn")
    async def burn(self, token_id: int) -> str:
        return await self.ledger.send_transaction(
            self.position_manager, POSITION_MANAGER_ABI, "burn", (int(token_id),)
        )

    # ------------------------------------------------------------------ #
    # Swaps                                                               #
    # ------------------------------------------------------------------ #

    async def _swap(
        self, fn_name: str, token_in: str, max_in: int, params: tuple
    ) -> str:
        await ensure_allowance(
            self.ledger, token_address=token_in, spender=self.swap_router, amount=max_in
        )
        tx = await self.ledger.send_transaction(
            self.swap_router, SWAP_ROUTER_ABI, fn_name, (params,)
        )
        self.logger.info(f"{fn_name} via {self.swap_router}: {tx}")
        return tx

    @operation("swap_exact_input_single")
    async def swap_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        amount_out_minimum: int = 0,
        limit_sqrt_price: int = 0,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        token_in = await self.ledger.resolve_address(token_in)
        token_out = await self.ledger.resolve_address(token_out)
        params = (
            token_in,
            token_out,
            self.ledger.current_address(),
            deadline(deadline_seconds),
            int(amount_in),
            int(amount_out_minimum),
            int(limit_sqrt_price),
        )
        return await self._swap("exactInputSingle", token_in, int(amount_in), params)

    @operation("swap_exact_output_single")
    async def swap_exact_output_single(
        self,
        token_in: str,
        token_out: str,
        amount_out: int,
        amount_in_maximum: int,
        limit_sqrt_price: int = 0,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        token_in = await self.ledger.resolve_address(token_in)
        token_out = await self.ledger.resolve_address(token_out)
        params = (
            token_in,
            token_out,
            0,  # fee is ignored by Algebra pools
            self.ledger.current_address(),
            deadline(deadline_seconds),
            int(amount_out),
            int(amount_in_maximum),
            int(limit_sqrt_price),
        )
        return await self._swap(
            "exactOutputSingle", token_in, int(amount_in_maximum), params
        )

    @operation("swap_exact_input_multi_hop")
    async def swap_exact_input_multi_hop(
        self,
        path: list[str],
        amount_in: int,
        amount_out_minimum: int = 0,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        tokens = [await self.ledger.resolve_address(t) for t in path]
        if len(tokens) < 2:
            raise ValidationError("swap_exact_input_multi_hop", "path needs at least two tokens")
        params = (
            encode_path(tokens),
            self.ledger.current_address(),
            deadline(deadline_seconds),
            int(amount_in),
            int(amount_out_minimum),
        )
        return await self._swap("exactInput", tokens[0], int(amount_in), params)

    @operation("swap_exact_output_multi_hop")
    async def swap_exact_output_multi_hop(
        self,
        path: list[str],
        amount_out: int,
        amount_in_maximum: int,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ) -> str:
        tokens = [await self.ledger.resolve_address(t) for t in path]
        if len(tokens) < 2:
            raise ValidationError("swap_exact_output_multi_hop", "path needs at least two tokens")
        # exactOutput walks the path from the output token back to the input
        params = (
            encode_path(list(reversed(tokens))),
            self.ledger.current_address(),
            deadline(deadline_seconds),
            int(amount_out),
            int(amount_in_maximum),
        )
        return await self._swap("exactOutput", tokens[0], int(amount_in_maximum), params)
