import json
import os
from pathlib import Path
from typing import Any

from midas_paths.core.constants.chains import CHAIN_ID_MODE, DEFAULT_RPC_URLS

_CONFIG_ENV_KEYS = ("MIDAS_CONFIG_PATH", "MIDAS_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_PRIVATE_KEY_ENV = "MIDAS_PRIVATE_KEY"

DEFAULT_IPFS_GATEWAY = "https://externalorgs.mypinata.cloud/ipfs"
DEFAULT_PYTH_BASE_URL = "https://hermes.pyth.network"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        data = json.loads(cfg_path.read_text())
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    configured = CONFIG.get("strategy", {}).get("rpc_urls", {})
    if configured:
        return configured
    return {str(k): v for k, v in DEFAULT_RPC_URLS.items()}


def get_chain_id() -> int:
    system = CONFIG.get("system", {})
    chain_id = system.get("chain_id")
    if chain_id is None:
        return CHAIN_ID_MODE
    return int(chain_id)


def get_private_key() -> str | None:
    wallet = CONFIG.get("wallet", {})
    key = wallet.get("private_key")
    if isinstance(key, str) and key.strip():
        return key.strip()
    env_key = os.environ.get(_PRIVATE_KEY_ENV, "").strip()
    return env_key or None


def get_wallet_address() -> str | None:
    """Address used for read-only sessions when no key is configured."""
    address = CONFIG.get("wallet", {}).get("address")
    return str(address).strip() if address else None


def get_ic_vaults() -> dict[str, str]:
    """Underlying token address -> Ironclad icVault address, lowercased keys."""
    vaults = CONFIG.get("ironclad", {}).get("ic_vaults", {})
    return {str(token).lower(): str(vault) for token, vault in vaults.items()}


def get_ipfs_gateway() -> str:
    clients = CONFIG.get("clients", {})
    return str(clients.get("ipfs_gateway") or DEFAULT_IPFS_GATEWAY).rstrip("/")


def get_pyth_base_url() -> str:
    clients = CONFIG.get("clients", {})
    return str(clients.get("pyth_base_url") or DEFAULT_PYTH_BASE_URL).rstrip("/")
