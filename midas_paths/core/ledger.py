"""Ledger client seam.

Every component talks to the chain through :class:`LedgerClient`: decoded
reads, confirmed transactions, address resolution and the caller's own
address. :class:`Web3LedgerClient` is the production implementation; tests
use ``midas_paths.testing.fake_ledger.FakeLedger``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from eth_account import Account
from eth_utils import is_address, to_checksum_address
from loguru import logger

from midas_paths.core.errors import ValidationError
from midas_paths.core.utils import web3 as web3_utils
from midas_paths.core.utils.transaction import (
    SignCallback,
    encode_call,
    make_sign_callback,
    send_transaction,
)


@runtime_checkable
class LedgerClient(Protocol):
    async def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any] = (),
    ) -> Any: ...

    async def send_transaction(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any] = (),
        *,
        value: int = 0,
    ) -> str: ...

    async def resolve_address(self, identifier: str) -> str: ...

    def current_address(self) -> str: ...


def checksum_or_raise(operation: str, identifier: str) -> str:
    candidate = str(identifier or "").strip()
    if not is_address(candidate):
        raise ValidationError(operation, f"not a valid address: {identifier!r}")
    return to_checksum_address(candidate)


class Web3LedgerClient:
    """LedgerClient backed by ``AsyncWeb3`` and a local signing key."""

    def __init__(
        self,
        *,
        chain_id: int,
        private_key: str | None = None,
        sign_callback: SignCallback | None = None,
        address: str | None = None,
    ) -> None:
        if private_key is None and address is None:
            raise ValueError("private_key or address is required")
        self.chain_id = int(chain_id)
        if private_key is not None:
            self._address = Account.from_key(private_key).address
            self._sign_callback = make_sign_callback(private_key)
        else:
            self._address = to_checksum_address(address)
            self._sign_callback = sign_callback
        self.logger = logger.bind(ledger=self.__class__.__name__)

    def current_address(self) -> str:
        return self._address

    async def resolve_address(self, identifier: str) -> str:
        return checksum_or_raise("resolve_address", identifier)

    async def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        async with web3_utils.web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(
                address=web3.to_checksum_address(address), abi=abi
            )
            fn = getattr(contract.functions, fn_name)
            return await fn(*args).call(block_identifier="latest")

    async def send_transaction(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any] = (),
        *,
        value: int = 0,
    ) -> str:
        if self._sign_callback is None:
            raise ValidationError(
                fn_name, "ledger is read-only; configure wallet.private_key to send"
            )
        tx = await encode_call(
            target=address,
            abi=abi,
            fn_name=fn_name,
            args=list(args),
            from_address=self._address,
            chain_id=self.chain_id,
            value=value,
        )
        self.logger.debug(f"Sending {fn_name} to {address}")
        return await send_transaction(tx, self._sign_callback)
