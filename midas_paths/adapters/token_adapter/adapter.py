from decimal import Decimal
from typing import Any

from midas_paths.core.adapters.BaseAdapter import BaseAdapter
from midas_paths.core.adapters.decorators import operation
from midas_paths.core.clients.PythClient import PYTH_CLIENT, PythClient
from midas_paths.core.constants.base import ADAPTER_TOKEN
from midas_paths.core.constants.erc20_abi import ERC20_ABI
from midas_paths.core.errors import ValidationError
from midas_paths.core.ledger import LedgerClient
from midas_paths.core.utils.tokens import (
    approve,
    get_token_allowance,
    get_token_balance,
    get_token_decimals,
    get_token_symbol,
)
from midas_paths.core.utils.units import format_units, from_base_units, to_base_units


class TokenAdapter(BaseAdapter):
    adapter_type: str = ADAPTER_TOKEN

    def __init__(
        self,
        ledger: LedgerClient,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int | None = None,
        price_client: PythClient | None = None,
    ):
        super().__init__("token_adapter", ledger, config, chain_id=chain_id)
        self.price_client = price_client or PYTH_CLIENT

    @operation("get_token_balance")
    async def get_balance(
        self, token: str, wallet: str | None = None
    ) -> dict[str, Any]:
        token = await self.ledger.resolve_address(token)
        wallet = (
            await self.ledger.resolve_address(wallet)
            if wallet
            else self.ledger.current_address()
        )
        raw = await get_token_balance(self.ledger, token, wallet)
        decimals = await get_token_decimals(self.ledger, token)
        symbol = await get_token_symbol(self.ledger, token)

        price = await self.price_client.get_usd_price(symbol)
        usd_value = None
        if price is not None:
            usd_value = float(from_base_units(raw, decimals) * price)
        return {
            "token": token,
            "wallet": wallet,
            "symbol": symbol,
            "raw_balance": str(raw),
            "balance": format_units(raw, decimals),
            "decimals": decimals,
            "usd_value": usd_value,
            "price_available": price is not None,
        }

    @operation("get_token_allowance")
    async def get_allowance(
        self, token: str, spender: str, owner: str | None = None
    ) -> int:
        token = await self.ledger.resolve_address(token)
        spender = await self.ledger.resolve_address(spender)
        owner = (
            await self.ledger.resolve_address(owner)
            if owner
            else self.ledger.current_address()
        )
        return await get_token_allowance(self.ledger, token, owner, spender)

    @operation("approve")
    async def approve(self, token: str, spender: str, amount: int) -> str:
        token = await self.ledger.resolve_address(token)
        spender = await self.ledger.resolve_address(spender)
        if int(amount) < 0:
            raise ValidationError("approve", "amount must be non-negative")
        return await approve(self.ledger, token, spender, int(amount))

    @operation("revoke_approval")
    async def revoke_approval(self, token: str, spender: str) -> str:
        token = await self.ledger.resolve_address(token)
        spender = await self.ledger.resolve_address(spender)
        return await approve(self.ledger, token, spender, 0)

    @operation("transfer")
    async def transfer(self, token: str, to: str, amount: int) -> str:
        token = await self.ledger.resolve_address(token)
        to = await self.ledger.resolve_address(to)
        if int(amount) <= 0:
            raise ValidationError("transfer", "amount must be positive")
        return await self.ledger.send_transaction(
            token, ERC20_ABI, "transfer", (to, int(amount))
        )

    @operation("convert_to_base_units")
    async def convert_to_base_units(self, token: str, amount: str) -> int:
        token = await self.ledger.resolve_address(token)
        decimals = await get_token_decimals(self.ledger, token)
        try:
            return to_base_units(amount, decimals)
        except (ValueError, OverflowError) as exc:
            raise ValidationError("convert_to_base_units", str(exc)) from exc

    @operation("convert_from_base_units")
    async def convert_from_base_units(self, token: str, amount: int) -> Decimal:
        token = await self.ledger.resolve_address(token)
        decimals = await get_token_decimals(self.ledger, token)
        return from_base_units(int(amount), decimals)
