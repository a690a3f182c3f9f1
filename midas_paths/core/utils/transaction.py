import asyncio
import math
from collections.abc import Awaitable, Callable
from typing import Any

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3

from midas_paths.core.constants.base import (
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from midas_paths.core.utils.web3 import (
    get_transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)

SignCallback = Callable[[dict], Awaitable[bytes]]


class TransactionRevertedError(RuntimeError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


def _revert_error(
    txn_hash: str, receipt: dict[str, Any], transaction: dict[str, Any]
) -> TransactionRevertedError:
    gas_used = int(receipt.get("gasUsed") or 0)
    gas_limit = int(transaction.get("gas") or 0)
    suffix = ""
    if gas_used or gas_limit:
        suffix = f" gasUsed={gas_used} gasLimit={gas_limit}"
        if gas_used and gas_limit and gas_used >= gas_limit:
            suffix += " (likely out of gas)"
    return TransactionRevertedError(
        txn_hash,
        receipt,
        message=f"Transaction reverted (status=0): {txn_hash}{suffix}",
    )


def _normalize_hash(txn_hash: Any) -> str:
    if isinstance(txn_hash, (bytes, bytearray)):
        txn_hash = bytes(txn_hash).hex()
    txn_hash = str(txn_hash)
    return txn_hash if txn_hash.startswith("0x") else f"0x{txn_hash}"


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


async def _estimate_gas(web3s: list[AsyncWeb3], transaction: dict) -> int:
    async def _one(web3: AsyncWeb3) -> int:
        try:
            return await web3.eth.estimate_gas(transaction, block_identifier="latest")
        except Exception as exc:  # noqa: BLE001
            logger.info(f"Gas estimation failed on {web3.provider.endpoint_uri}: {exc}")
            return 0

    gas_limit = max(await asyncio.gather(*[_one(web3) for web3 in web3s]))
    if gas_limit == 0:
        raise RuntimeError("Gas estimation failed on all RPCs")
    return int(math.ceil(gas_limit * GAS_BUFFER_MULTIPLIER))


async def _fees(web3: AsyncWeb3) -> tuple[int, int]:
    latest_block = await web3.eth.get_block("latest")
    base_fee = int(latest_block["baseFeePerGas"])
    priority_fee = int(await web3.eth.max_priority_fee)
    max_priority = int(priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER)
    return base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER + max_priority, max_priority


async def prepare_transaction(transaction: dict) -> dict:
    """Fill gas limit, pending nonce and EIP-1559 fees on a copy of ``transaction``."""
    transaction = transaction.copy()
    # prevents RPCs from taking a caller-provided gas value as a hard limit
    transaction.pop("gas", None)
    from_address = _get_transaction_from_address(transaction)

    async with web3s_from_chain_id(get_transaction_chain_id(transaction)) as web3s:
        transaction["gas"] = await _estimate_gas(web3s, transaction)
        nonces = await asyncio.gather(
            *[
                web3.eth.get_transaction_count(from_address, block_identifier="pending")
                for web3 in web3s
            ]
        )
        transaction["nonce"] = max(nonces)
        max_fee, max_priority = await _fees(web3s[0])
        transaction["maxFeePerGas"] = max_fee
        transaction["maxPriorityFeePerGas"] = max_priority
    return transaction


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    *,
    poll_interval: float = 0.5,
    timeout: int = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict:
    async with web3_from_chain_id(chain_id) as web3:
        receipt = await web3.eth.wait_for_transaction_receipt(
            _normalize_hash(txn_hash), timeout=timeout, poll_latency=poll_interval
        )
    return dict(receipt)


async def send_transaction(
    transaction: dict, sign_callback: SignCallback, wait_for_receipt: bool = True
) -> str:
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    chain_id = get_transaction_chain_id(transaction)
    transaction = await prepare_transaction(transaction)
    signed_transaction = await sign_callback(transaction)
    async with web3_from_chain_id(chain_id) as web3:
        txn_hash = _normalize_hash(await web3.eth.send_raw_transaction(signed_transaction))
    logger.info(f"Transaction broadcasted: {txn_hash}")

    if wait_for_receipt:
        receipt = await wait_for_transaction_receipt(chain_id, txn_hash)
        if int(receipt.get("status", 1)) == 0:
            raise _revert_error(txn_hash, receipt, transaction)
    return txn_hash


def make_sign_callback(private_key: str) -> SignCallback:
    account = Account.from_key(private_key)

    async def sign_callback(tx: dict) -> bytes:
        signed = account.sign_transaction(tx)
        return signed.raw_transaction

    return sign_callback


async def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    async with web3_from_chain_id(chain_id) as web3:
        try:
            contract = web3.eth.contract(
                address=web3.to_checksum_address(target),
                abi=abi,
            )
            data = contract.encode_abi(fn_name, args)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

        return {
            "chainId": int(chain_id),
            "from": AsyncWeb3.to_checksum_address(from_address),
            "to": AsyncWeb3.to_checksum_address(target),
            "data": data,
            "value": int(value),
        }
