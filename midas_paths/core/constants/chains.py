CHAIN_ID_MODE = 34443

SUPPORTED_CHAINS = [CHAIN_ID_MODE]

DEFAULT_RPC_URLS: dict[int, list[str]] = {
    CHAIN_ID_MODE: ["https://mainnet.mode.network"],
}
