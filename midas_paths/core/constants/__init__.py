from midas_paths.core.constants.base import (
    BPS_DENOMINATOR,
    MAX_UINT128,
    MAX_UINT256,
    ZERO_ADDRESS,
)
from midas_paths.core.constants.chains import CHAIN_ID_MODE, SUPPORTED_CHAINS

__all__ = [
    "BPS_DENOMINATOR",
    "CHAIN_ID_MODE",
    "MAX_UINT128",
    "MAX_UINT256",
    "SUPPORTED_CHAINS",
    "ZERO_ADDRESS",
]
