from __future__ import annotations

import random
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address

from midas_paths.core.adapters.BaseAdapter import BaseAdapter
from midas_paths.core.adapters.decorators import operation
from midas_paths.core.config import get_ic_vaults
from midas_paths.core.constants.base import (
    ADAPTER_IRONCLAD,
    BPS_DENOMINATOR,
    DEFAULT_MAX_FEE_PERCENTAGE,
    DEFAULT_REFERRAL_CODE,
    TROVE_GAS_COMPENSATION,
    VARIABLE_RATE_MODE,
)
from midas_paths.core.constants.erc20_abi import ERC20_ABI
from midas_paths.core.constants.ironclad_abi import (
    BORROWER_OPERATIONS_ABI,
    IC_VAULT_ABI,
    LENDING_POOL_ABI,
    TROVE_MANAGER_ABI,
)
from midas_paths.core.constants.ironclad_contracts import IRONCLAD_BY_CHAIN, TROVE_STATUS
from midas_paths.core.engine.leverage_loop import (
    LeverageLoopEngine,
    LoopPosition,
    UnwindResult,
)
from midas_paths.core.errors import ValidationError
from midas_paths.core.ledger import LedgerClient
from midas_paths.core.utils.risk import (
    ReserveConfig,
    ReserveSnapshot,
    available_to_borrow,
    format_health_factor,
    format_loan_to_value,
    health_factor,
    loan_to_value,
)
from midas_paths.core.utils.tokens import (
    ensure_allowance,
    get_token_balance,
    get_token_decimals,
)
from midas_paths.core.utils.trove_hints import TroveHints, find_trove_hints
from midas_paths.core.utils.units import format_units

IUSD_DECIMALS = 18


def _bps_percent(bps: int) -> str:
    return f"{Decimal(bps) / 100:.2f}%"


class IroncladAdapter(BaseAdapter):
    """Ironclad lending pool, leveraged loops and iUSD troves on Mode."""

    adapter_type = ADAPTER_IRONCLAD

    def __init__(
        self,
        ledger: LedgerClient,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__("ironclad_adapter", ledger, config, chain_id=chain_id)
        entry = IRONCLAD_BY_CHAIN.get(self.chain_id)
        if entry is None:
            raise ValueError(f"Ironclad is not deployed on chain {self.chain_id}")
        self.lending_pool = to_checksum_address(entry["lending_pool"])
        self.data_provider = to_checksum_address(entry["protocol_data_provider"])
        self.iusd = to_checksum_address(entry["iusd"])
        self.borrower_operations = to_checksum_address(entry["borrower_operations"])
        self.trove_manager = to_checksum_address(entry["trove_manager"])
        self.hint_helpers = to_checksum_address(entry["hint_helpers"])
        self.rng = rng or random.SystemRandom()
        self.engine = LeverageLoopEngine(
            ledger, lending_pool=self.lending_pool, data_provider=self.data_provider
        )

    async def get_lending_pool_address(self) -> str:
        return self.lending_pool

    async def get_borrower_address(self) -> str:
        return self.borrower_operations

    def _require_positive(self, op: str, name: str, value: int) -> int:
        if int(value) <= 0:
            raise ValidationError(op, f"{name} must be positive")
        return int(value)

    async def _snapshot(self, asset: str, user: str | None = None) -> ReserveSnapshot:
        return await self.engine.read_snapshot(asset, user or self.ledger.current_address())

    # ------------------------------------------------------------------ #
    # Lending pool                                                        #
    # ------------------------------------------------------------------ #

    @operation("deposit")
    async def deposit(
        self, asset: str, amount: int, referral_code: int = DEFAULT_REFERRAL_CODE
    ) -> str:
        asset = await self.ledger.resolve_address(asset)
        amount = self._require_positive("deposit", "amount", amount)
        caller = self.ledger.current_address()
        await ensure_allowance(
            self.ledger,
            token_address=asset,
            spender=self.lending_pool,
            amount=amount,
            owner=caller,
        )
        tx = await self.ledger.send_transaction(
            self.lending_pool,
            LENDING_POOL_ABI,
            "deposit",
            (asset, amount, caller, referral_code),
        )
        self.logger.info(f"Deposited {amount} of {asset}: {tx}")
        return tx

    @operation("borrow")
    async def borrow(
        self, asset: str, amount: int, referral_code: int = DEFAULT_REFERRAL_CODE
    ) -> str:
        asset = await self.ledger.resolve_address(asset)
        amount = self._require_positive("borrow", "amount", amount)
        tx = await self.ledger.send_transaction(
            self.lending_pool,
            LENDING_POOL_ABI,
            "borrow",
            (
                asset,
                amount,
                VARIABLE_RATE_MODE,
                referral_code,
                self.ledger.current_address(),
            ),
        )
        self.logger.info(f"Borrowed {amount} of {asset}: {tx}")
        return tx

    @operation("withdraw")
    async def withdraw(self, asset: str, amount: int | None = None) -> str:
        asset = await self.ledger.resolve_address(asset)
        caller = self.ledger.current_address()
        if amount is None:
            amount = (await self._snapshot(asset, caller)).collateral_balance
            if amount == 0:
                raise ValidationError("withdraw", f"no {asset} deposited to withdraw")
        amount = self._require_positive("withdraw", "amount", amount)
        tx = await self.ledger.send_transaction(
            self.lending_pool, LENDING_POOL_ABI, "withdraw", (asset, amount, caller)
        )
        self.logger.info(f"Withdrew {amount} of {asset}: {tx}")
        return tx

    @operation("repay")
    async def repay(self, asset: str, amount: int | None = None) -> str:
        asset = await self.ledger.resolve_address(asset)
        caller = self.ledger.current_address()
        if amount is None:
            amount = (await self._snapshot(asset, caller)).variable_debt
            if amount == 0:
                raise ValidationError("repay", f"no variable {asset} debt to repay")
        amount = self._require_positive("repay", "amount", amount)
        await ensure_allowance(
            self.ledger,
            token_address=asset,
            spender=self.lending_pool,
            amount=amount,
            owner=caller,
        )
        tx = await self.ledger.send_transaction(
            self.lending_pool,
            LENDING_POOL_ABI,
            "repay",
            (asset, amount, VARIABLE_RATE_MODE, caller),
        )
        self.logger.info(f"Repaid {amount} of {asset}: {tx}")
        return tx

    # ------------------------------------------------------------------ #
    # Leveraged loops                                                     #
    # ------------------------------------------------------------------ #

    async def loop_deposit(
        self,
        asset: str,
        initial_amount: int,
        num_loops: int = 2,
        referral_code: int = DEFAULT_REFERRAL_CODE,
    ) -> LoopPosition:
        asset = await self.ledger.resolve_address(asset)
        return await self.engine.loop_deposit(
            asset, int(initial_amount), int(num_loops), referral_code
        )

    async def loop_withdraw(self, asset: str) -> UnwindResult:
        asset = await self.ledger.resolve_address(asset)
        return await self.engine.loop_withdraw(asset)

    @operation("calculate_max_withdrawable")
    async def calculate_max_withdrawable(self, asset: str) -> int:
        asset = await self.ledger.resolve_address(asset)
        snapshot = await self._snapshot(asset)
        config = await self.engine.read_config(asset)
        return self.engine.withdrawable(
            "calculate_max_withdrawable", asset, snapshot, config
        )

    async def _position_state(
        self, asset: str, user: str | None
    ) -> tuple[str, ReserveSnapshot, ReserveConfig, int]:
        asset = await self.ledger.resolve_address(asset)
        user = await self.ledger.resolve_address(user) if user else None
        snapshot = await self._snapshot(asset, user)
        config = await self.engine.read_config(asset)
        decimals = await get_token_decimals(self.ledger, asset)
        return asset, snapshot, config, decimals

    @operation("monitor_loop_position")
    async def monitor_loop_position(
        self, asset: str, user: str | None = None
    ) -> dict[str, Any]:
        asset, snapshot, config, decimals = await self._position_state(asset, user)
        return {
            "asset": asset,
            "total_collateral": format_units(snapshot.collateral_balance, decimals),
            "total_borrowed": format_units(snapshot.total_debt, decimals),
            "current_ltv": format_loan_to_value(loan_to_value(snapshot)),
            "health_factor": format_health_factor(health_factor(snapshot, config)),
            "liquidation_threshold": _bps_percent(config.liquidation_threshold_bps),
        }

    @operation("monitor_lending_position")
    async def monitor_lending_position(
        self, asset: str, user: str | None = None
    ) -> dict[str, Any]:
        asset, snapshot, config, decimals = await self._position_state(asset, user)
        return {
            "asset": asset,
            "deposited": format_units(snapshot.collateral_balance, decimals),
            "borrowed": format_units(snapshot.total_debt, decimals),
            "available_to_borrow": format_units(
                available_to_borrow(snapshot, config), decimals
            ),
            "current_ltv": format_loan_to_value(loan_to_value(snapshot)),
            "health_factor": format_health_factor(health_factor(snapshot, config)),
            "ltv": _bps_percent(config.ltv_bps),
            "liquidation_threshold": _bps_percent(config.liquidation_threshold_bps),
        }

    # ------------------------------------------------------------------ #
    # iUSD troves                                                         #
    # ------------------------------------------------------------------ #

    def get_ic_vault(self, token: str) -> str:
        vaults = {**get_ic_vaults()}
        vaults.update(
            {str(k).lower(): str(v) for k, v in self.config.get("ic_vaults", {}).items()}
        )
        vault = vaults.get(str(token).lower())
        if vault is None:
            raise ValidationError("get_ic_vault", f"no icVault configured for {token}")
        return to_checksum_address(vault)

    async def find_hints(
        self, vault: str, collateral_amount: int, debt: int
    ) -> TroveHints:
        return await find_trove_hints(
            self.ledger,
            trove_manager=self.trove_manager,
            hint_helpers=self.hint_helpers,
            collateral=vault,
            collateral_amount=collateral_amount,
            debt=debt,
            rng=self.rng,
        )

    @operation("borrow_iusd")
    async def borrow_iusd(
        self,
        token: str,
        token_amount: int,
        iusd_amount: int,
        max_fee_percentage: int = DEFAULT_MAX_FEE_PERCENTAGE,
    ) -> str:
        token = await self.ledger.resolve_address(token)
        token_amount = self._require_positive("borrow_iusd", "token_amount", token_amount)
        iusd_amount = self._require_positive("borrow_iusd", "iusd_amount", iusd_amount)
        vault = self.get_ic_vault(token)
        caller = self.ledger.current_address()
        log = self.logger.bind(token=token, vault=vault)

        await ensure_allowance(
            self.ledger, token_address=token, spender=vault, amount=token_amount
        )
        tx = await self.ledger.send_transaction(
            vault, IC_VAULT_ABI, "deposit", (token_amount, caller)
        )
        log.info(f"step=vault_deposit amount={token_amount} tx={tx}")

        await ensure_allowance(
            self.ledger,
            token_address=vault,
            spender=self.borrower_operations,
            amount=token_amount,
        )
        hints = await self.find_hints(vault, token_amount, iusd_amount)
        tx = await self.ledger.send_transaction(
            self.borrower_operations,
            BORROWER_OPERATIONS_ABI,
            "openTrove",
            (
                vault,
                token_amount,
                int(max_fee_percentage),
                iusd_amount,
                hints.upper_hint,
                hints.lower_hint,
            ),
        )
        log.info(
            f"step=open_trove collateral={token_amount} iusd={iusd_amount} "
            f"upper_hint={hints.upper_hint} tx={tx}"
        )
        return tx

    @operation("repay_iusd")
    async def repay_iusd(self, token: str) -> str:
        token = await self.ledger.resolve_address(token)
        vault = self.get_ic_vault(token)
        caller = self.ledger.current_address()
        log = self.logger.bind(token=token, vault=vault)

        total_debt = int(
            await self.ledger.read(
                self.trove_manager, TROVE_MANAGER_ABI, "getTroveDebt", (caller, vault)
            )
        )
        if total_debt == 0:
            raise ValidationError("repay_iusd", f"no open trove for {vault}")
        repay_amount = max(0, total_debt - TROVE_GAS_COMPENSATION)

        await ensure_allowance(
            self.ledger,
            token_address=self.iusd,
            spender=self.borrower_operations,
            amount=repay_amount,
        )
        close_tx = await self.ledger.send_transaction(
            self.borrower_operations, BORROWER_OPERATIONS_ABI, "closeTrove", (vault,)
        )
        log.info(f"step=close_trove debt={total_debt} repaid={repay_amount} tx={close_tx}")

        shares = await get_token_balance(self.ledger, vault, caller)
        if shares > 0:
            tx = await self.ledger.send_transaction(
                vault, IC_VAULT_ABI, "withdraw", (shares,)
            )
            log.info(f"step=vault_withdraw shares={shares} tx={tx}")
        return close_tx

    @operation("monitor_trove")
    async def monitor_trove(self, token: str, user: str | None = None) -> dict[str, Any]:
        token = await self.ledger.resolve_address(token)
        user = await self.ledger.resolve_address(user) if user else None
        user = user or self.ledger.current_address()
        vault = self.get_ic_vault(token)
        status = int(
            await self.ledger.read(
                self.trove_manager, TROVE_MANAGER_ABI, "getTroveStatus", (user, vault)
            )
        )
        coll = int(
            await self.ledger.read(
                self.trove_manager, TROVE_MANAGER_ABI, "getTroveColl", (user, vault)
            )
        )
        debt = int(
            await self.ledger.read(
                self.trove_manager, TROVE_MANAGER_ABI, "getTroveDebt", (user, vault)
            )
        )
        vault_decimals = int(await self.ledger.read(vault, ERC20_ABI, "decimals"))
        return {
            "vault": vault,
            "status": TROVE_STATUS.get(status, f"unknown({status})"),
            "collateral": format_units(coll, vault_decimals),
            "debt": format_units(debt, IUSD_DECIMALS),
        }
