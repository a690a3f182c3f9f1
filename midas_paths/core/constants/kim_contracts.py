from midas_paths.core.constants.chains import CHAIN_ID_MODE

KIM_BY_CHAIN: dict[int, dict[str, str]] = {
    CHAIN_ID_MODE: {
        "swap_router": "0xAc48FcF1049668B285f3dC72483DF5Ae2162f7e8",
        "position_manager": "0x2e8614625226D26180aDf6530C3b1677d3D7cf10",
        "factory": "0xB5F00c2C5f8821155D8ed27E31932CFD9DB3C5D5",
        "calculator": "0x6f8E2B58373aB12Be5f7c28658633dD27D689f0D",
    }
}

# Index layout of NonfungiblePositionManager.positions() on Algebra (no fee tier)
POSITION_KEYS = [
    "nonce",
    "operator",
    "token0",
    "token1",
    "tick_lower",
    "tick_upper",
    "liquidity",
    "fee_growth_inside0_last_x128",
    "fee_growth_inside1_last_x128",
    "tokens_owed0",
    "tokens_owed1",
]
