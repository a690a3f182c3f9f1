from contextlib import asynccontextmanager

from web3 import AsyncHTTPProvider, AsyncWeb3

from midas_paths.core.config import get_rpc_urls


def _get_rpcs_for_chain_id(chain_id: int) -> list[str]:
    mapping = get_rpc_urls()
    rpcs = mapping.get(str(chain_id))
    if rpcs is None:
        rpcs = mapping.get(chain_id)  # allow int keys
    if not rpcs:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    if isinstance(rpcs, str):
        return [rpcs]
    return list(rpcs)


def _get_web3(rpc: str) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(rpc))


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def get_web3s_from_chain_id(chain_id: int) -> list[AsyncWeb3]:
    return [_get_web3(rpc) for rpc in _get_rpcs_for_chain_id(chain_id)]


@asynccontextmanager
async def web3s_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s
    finally:
        for web3 in web3s:
            await web3.provider.disconnect()


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    web3 = _get_web3(_get_rpcs_for_chain_id(chain_id)[0])
    try:
        yield web3
    finally:
        await web3.provider.disconnect()
