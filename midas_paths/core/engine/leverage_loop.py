"""Leveraged lending loops on an Aave-v2 style pool.

Lever up: deposit, then repeat borrow -> approve -> re-deposit, each borrow
sized from the freshly read LTV. Lever down: repeat withdraw -> approve ->
repay, each withdrawal sized by the risk calculator from a fresh snapshot,
then sweep what is left. Only variable-rate debt is unwound; a position that
also carries stable-rate debt is refused before any transaction.

Steps run strictly in order and every size is computed from state read after
the previous transaction. A failed transaction aborts the sequence; earlier
transactions are already final on-chain, so callers re-read the position
with the monitor operations to see where it stopped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from midas_paths.core.adapters.decorators import operation
from midas_paths.core.constants.base import (
    DEFAULT_REFERRAL_CODE,
    MAX_UINT256,
    UNWIND_HAIRCUT_DENOMINATOR,
    UNWIND_HAIRCUT_NUMERATOR,
    VARIABLE_RATE_MODE,
)
from midas_paths.core.constants.ironclad_abi import (
    LENDING_POOL_ABI,
    PROTOCOL_DATA_PROVIDER_ABI,
)
from midas_paths.core.errors import SolvencyError, ValidationError
from midas_paths.core.ledger import LedgerClient
from midas_paths.core.utils.risk import (
    ReserveConfig,
    ReserveSnapshot,
    borrow_amount_for,
    max_withdrawable,
)
from midas_paths.core.utils.tokens import ensure_allowance
from midas_paths.core.utils.units import checked_uint

SOLVENCY_LIMIT_MESSAGE = (
    "Cannot withdraw any more funds while maintaining health factor"
)


@dataclass
class LoopPosition:
    borrowed_amounts: list[int] = field(default_factory=list)
    total_deposited: int = 0
    total_borrowed: int = 0

    def record_borrow(self, amount: int) -> None:
        self.borrowed_amounts.append(amount)
        self.total_borrowed = checked_uint(
            self.total_borrowed + amount, name="total_borrowed"
        )
        self.total_deposited = checked_uint(
            self.total_deposited + amount, name="total_deposited"
        )

    @property
    def loops_completed(self) -> int:
        return len(self.borrowed_amounts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "borrowed_amounts": [str(a) for a in self.borrowed_amounts],
            "total_deposited": str(self.total_deposited),
            "total_borrowed": str(self.total_borrowed),
            "loops_completed": self.loops_completed,
        }


@dataclass(frozen=True)
class UnwindResult:
    loops: int
    swept: bool

    @property
    def message(self) -> str:
        return f"Successfully unwound position in {self.loops} loops"

    def __str__(self) -> str:
        return self.message


class LeverageLoopEngine:
    def __init__(
        self,
        ledger: LedgerClient,
        *,
        lending_pool: str,
        data_provider: str,
    ) -> None:
        self.ledger = ledger
        self.lending_pool = lending_pool
        self.data_provider = data_provider
        self.logger = logger.bind(engine="leverage_loop")

    async def read_snapshot(self, asset: str, user: str) -> ReserveSnapshot:
        data = await self.ledger.read(
            self.data_provider,
            PROTOCOL_DATA_PROVIDER_ABI,
            "getUserReserveData",
            (asset, user),
        )
        return ReserveSnapshot.from_user_reserve_data(data)

    async def read_config(self, asset: str) -> ReserveConfig:
        data = await self.ledger.read(
            self.data_provider,
            PROTOCOL_DATA_PROVIDER_ABI,
            "getReserveConfigurationData",
            (asset,),
        )
        return ReserveConfig.from_reserve_configuration_data(data)

    async def _deposit(
        self, asset: str, amount: int, on_behalf_of: str, referral_code: int
    ) -> str:
        return await self.ledger.send_transaction(
            self.lending_pool,
            LENDING_POOL_ABI,
            "deposit",
            (asset, amount, on_behalf_of, referral_code),
        )

    @operation("loop_deposit")
    async def loop_deposit(
        self,
        asset: str,
        initial_amount: int,
        num_loops: int,
        referral_code: int = DEFAULT_REFERRAL_CODE,
    ) -> LoopPosition:
        if initial_amount <= 0:
            raise ValidationError("loop_deposit", "initial_amount must be positive")
        checked_uint(initial_amount, name="initial_amount")
        if num_loops < 0:
            raise ValidationError("loop_deposit", "num_loops must be non-negative")

        caller = self.ledger.current_address()
        log = self.logger.bind(asset=asset, user=caller)

        if num_loops > 0:
            config = await self.read_config(asset)
            if config.ltv_bps == 0:
                raise ValidationError(
                    "loop_deposit", f"asset {asset} cannot be borrowed against (ltv 0)"
                )

        tx = await self._deposit(asset, initial_amount, caller, referral_code)
        log.info(f"step=deposit loop=0 amount={initial_amount} tx={tx}")
        position = LoopPosition(total_deposited=initial_amount)

        current = initial_amount
        for loop in range(1, num_loops + 1):
            config = await self.read_config(asset)
            borrow_amount = borrow_amount_for(current, config)
            if borrow_amount == 0:
                log.warning(
                    f"step=borrow loop={loop} amount rounds to zero, stopping early"
                )
                break

            tx = await self.ledger.send_transaction(
                self.lending_pool,
                LENDING_POOL_ABI,
                "borrow",
                (asset, borrow_amount, VARIABLE_RATE_MODE, referral_code, caller),
            )
            log.info(
                f"step=borrow loop={loop} amount={borrow_amount} "
                f"ltv_bps={config.ltv_bps} tx={tx}"
            )

            approval = await ensure_allowance(
                self.ledger,
                token_address=asset,
                spender=self.lending_pool,
                amount=borrow_amount,
                owner=caller,
            )
            if approval:
                log.info(f"step=approve loop={loop} amount={borrow_amount} tx={approval}")

            tx = await self._deposit(asset, borrow_amount, caller, referral_code)
            log.info(f"step=deposit loop={loop} amount={borrow_amount} tx={tx}")

            position.record_borrow(borrow_amount)
            current = borrow_amount

        log.info(
            f"Loop deposit done: loops={position.loops_completed} "
            f"deposited={position.total_deposited} borrowed={position.total_borrowed}"
        )
        return position

    def withdrawable(
        self,
        operation_name: str,
        asset: str,
        snapshot: ReserveSnapshot,
        config: ReserveConfig,
    ) -> int:
        if snapshot.total_debt > 0 and config.liquidation_threshold_bps == 0:
            raise ValidationError(
                operation_name,
                f"asset {asset} cannot be used as collateral (liquidation threshold 0)",
            )
        return max_withdrawable(snapshot, config)

    @operation("loop_withdraw")
    async def loop_withdraw(self, asset: str) -> UnwindResult:
        caller = self.ledger.current_address()
        log = self.logger.bind(asset=asset, user=caller)

        snapshot = await self.read_snapshot(asset, caller)
        log.info(
            f"Unwinding: collateral={snapshot.collateral_balance} "
            f"debt={snapshot.variable_debt}"
        )
        if snapshot.stable_debt > 0:
            raise SolvencyError(
                "loop_withdraw",
                "stable-rate debt is not unwound by this loop; repay it first",
                details={"stable_debt": str(snapshot.stable_debt)},
            )

        loops = 0
        while snapshot.variable_debt > 0:
            config = await self.read_config(asset)
            safe_max = self.withdrawable("loop_withdraw", asset, snapshot, config)
            amount = safe_max * UNWIND_HAIRCUT_NUMERATOR // UNWIND_HAIRCUT_DENOMINATOR
            if amount == 0:
                raise SolvencyError(
                    "loop_withdraw",
                    SOLVENCY_LIMIT_MESSAGE,
                    details={
                        "collateral": str(snapshot.collateral_balance),
                        "debt": str(snapshot.total_debt),
                        "liquidation_threshold_bps": config.liquidation_threshold_bps,
                        "loops_completed": loops,
                    },
                )
            loops += 1

            tx = await self.ledger.send_transaction(
                self.lending_pool,
                LENDING_POOL_ABI,
                "withdraw",
                (asset, amount, caller),
            )
            log.info(
                f"step=withdraw loop={loops} amount={amount} max={safe_max} tx={tx}"
            )

            approval = await ensure_allowance(
                self.ledger,
                token_address=asset,
                spender=self.lending_pool,
                amount=amount,
                owner=caller,
            )
            if approval:
                log.info(f"step=approve loop={loops} amount={amount} tx={approval}")

            tx = await self.ledger.send_transaction(
                self.lending_pool,
                LENDING_POOL_ABI,
                "repay",
                (asset, amount, VARIABLE_RATE_MODE, caller),
            )
            log.info(f"step=repay loop={loops} amount={amount} tx={tx}")

            snapshot = await self.read_snapshot(asset, caller)
            log.debug(f"loop={loops} remaining_debt={snapshot.variable_debt}")

        swept = False
        if snapshot.collateral_balance > 0:
            tx = await self.ledger.send_transaction(
                self.lending_pool,
                LENDING_POOL_ABI,
                "withdraw",
                (asset, MAX_UINT256, caller),
            )
            swept = True
            log.info(
                f"step=final_sweep amount={snapshot.collateral_balance} tx={tx}"
            )

        result = UnwindResult(loops=loops, swept=swept)
        log.info(result.message)
        return result
