from __future__ import annotations

# Minimal ABIs for the Ironclad (Aave v2 fork) lending pool and the
# Liquity-style iUSD trove system.

LENDING_POOL_ABI = [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "onBehalfOf", "type": "address"},
            {"name": "referralCode", "type": "uint16"},
        ],
        "outputs": [],
    },
    {
        "name": "withdraw",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "to", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "borrow",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "interestRateMode", "type": "uint256"},
            {"name": "referralCode", "type": "uint16"},
            {"name": "onBehalfOf", "type": "address"},
        ],
        "outputs": [],
    },
    {
        "name": "repay",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "rateMode", "type": "uint256"},
            {"name": "onBehalfOf", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

PROTOCOL_DATA_PROVIDER_ABI = [
    {
        "name": "getReserveConfigurationData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "asset", "type": "address"}],
        "outputs": [
            {"name": "decimals", "type": "uint256"},
            {"name": "ltv", "type": "uint256"},
            {"name": "liquidationThreshold", "type": "uint256"},
            {"name": "liquidationBonus", "type": "uint256"},
            {"name": "reserveFactor", "type": "uint256"},
            {"name": "usageAsCollateralEnabled", "type": "bool"},
            {"name": "borrowingEnabled", "type": "bool"},
            {"name": "stableBorrowRateEnabled", "type": "bool"},
            {"name": "isActive", "type": "bool"},
            {"name": "isFrozen", "type": "bool"},
        ],
    },
    {
        "name": "getUserReserveData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "user", "type": "address"},
        ],
        "outputs": [
            {"name": "currentATokenBalance", "type": "uint256"},
            {"name": "currentStableDebt", "type": "uint256"},
            {"name": "currentVariableDebt", "type": "uint256"},
            {"name": "principalStableDebt", "type": "uint256"},
            {"name": "scaledVariableDebt", "type": "uint256"},
            {"name": "stableBorrowRate", "type": "uint256"},
            {"name": "liquidityRate", "type": "uint256"},
            {"name": "stableRateLastUpdated", "type": "uint40"},
            {"name": "usageAsCollateralEnabled", "type": "bool"},
        ],
    },
]

RESERVE_CONFIGURATION_KEYS = [
    "decimals",
    "ltv",
    "liquidationThreshold",
    "liquidationBonus",
    "reserveFactor",
    "usageAsCollateralEnabled",
    "borrowingEnabled",
    "stableBorrowRateEnabled",
    "isActive",
    "isFrozen",
]

USER_RESERVE_KEYS = [
    "currentATokenBalance",
    "currentStableDebt",
    "currentVariableDebt",
    "principalStableDebt",
    "scaledVariableDebt",
    "stableBorrowRate",
    "liquidityRate",
    "stableRateLastUpdated",
    "usageAsCollateralEnabled",
]

IC_VAULT_ABI = [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "receiver", "type": "address"},
        ],
        "outputs": [{"name": "shares", "type": "uint256"}],
    },
    {
        "name": "withdraw",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "shares", "type": "uint256"}],
        "outputs": [{"name": "amount", "type": "uint256"}],
    },
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

BORROWER_OPERATIONS_ABI = [
    {
        "name": "openTrove",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_collateral", "type": "address"},
            {"name": "_collAmount", "type": "uint256"},
            {"name": "_maxFeePercentage", "type": "uint256"},
            {"name": "_LUSDAmount", "type": "uint256"},
            {"name": "_upperHint", "type": "address"},
            {"name": "_lowerHint", "type": "address"},
        ],
        "outputs": [],
    },
    {
        "name": "closeTrove",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_collateral", "type": "address"}],
        "outputs": [],
    },
]

TROVE_MANAGER_ABI = [
    {
        "name": "getTroveOwnersCount",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "_collateral", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "getTroveDebt",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_borrower", "type": "address"},
            {"name": "_collateral", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "getTroveColl",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_borrower", "type": "address"},
            {"name": "_collateral", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "getTroveStatus",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_borrower", "type": "address"},
            {"name": "_collateral", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

HINT_HELPERS_ABI = [
    {
        "name": "computeNominalCR",
        "type": "function",
        "stateMutability": "pure",
        "inputs": [
            {"name": "_coll", "type": "uint256"},
            {"name": "_debt", "type": "uint256"},
            {"name": "_collateralDecimals", "type": "uint8"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "getApproxHint",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_collateral", "type": "address"},
            {"name": "_CR", "type": "uint256"},
            {"name": "_numTrials", "type": "uint256"},
            {"name": "_inputRandomSeed", "type": "uint256"},
        ],
        "outputs": [
            {"name": "hintAddress", "type": "address"},
            {"name": "diff", "type": "uint256"},
            {"name": "latestRandomSeed", "type": "uint256"},
        ],
    },
]
