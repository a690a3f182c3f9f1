from __future__ import annotations

from loguru import logger

from midas_paths.core.constants.erc20_abi import ERC20_ABI
from midas_paths.core.ledger import LedgerClient


async def get_token_balance(
    ledger: LedgerClient, token_address: str, wallet_address: str
) -> int:
    return int(await ledger.read(token_address, ERC20_ABI, "balanceOf", (wallet_address,)))


async def get_token_decimals(ledger: LedgerClient, token_address: str) -> int:
    return int(await ledger.read(token_address, ERC20_ABI, "decimals"))


async def get_token_symbol(ledger: LedgerClient, token_address: str) -> str:
    return str(await ledger.read(token_address, ERC20_ABI, "symbol"))


async def get_token_allowance(
    ledger: LedgerClient, token_address: str, owner_address: str, spender_address: str
) -> int:
    return int(
        await ledger.read(
            token_address, ERC20_ABI, "allowance", (owner_address, spender_address)
        )
    )


async def approve(
    ledger: LedgerClient, token_address: str, spender_address: str, amount: int
) -> str:
    return await ledger.send_transaction(
        token_address, ERC20_ABI, "approve", (spender_address, int(amount))
    )


async def ensure_allowance(
    ledger: LedgerClient,
    *,
    token_address: str,
    spender: str,
    amount: int,
    owner: str | None = None,
) -> str | None:
    """Make sure ``spender`` may pull ``amount`` of ``token_address`` from ``owner``.

    Reads the current allowance and, only when it is short, approves exactly
    ``amount`` (never unlimited). The approval is confirmed before this
    returns. Returns the approval transaction hash, or ``None`` when the
    existing allowance already covers ``amount``.
    """
    owner = owner or ledger.current_address()
    allowance = await get_token_allowance(ledger, token_address, owner, spender)
    if allowance >= amount:
        logger.debug(
            f"Allowance {allowance} covers {amount} of {token_address} for {spender}"
        )
        return None

    logger.info(
        f"Approving {amount} of {token_address} for {spender} (allowance {allowance})"
    )
    return await approve(ledger, token_address, spender, amount)
