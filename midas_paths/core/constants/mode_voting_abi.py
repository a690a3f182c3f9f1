from __future__ import annotations

# Minimal ABIs for Mode's SimpleGaugeVoter, its epoch clock and the
# voting-escrow NFT.

GAUGE_VOTER_ABI = [
    {
        "name": "getAllGauges",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address[]"}],
    },
    {
        "name": "getGauge",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "_gauge", "type": "address"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "active", "type": "bool"},
                    {"name": "created", "type": "uint256"},
                    {"name": "metadataURI", "type": "string"},
                ],
            }
        ],
    },
    {
        "name": "gaugeVotes",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "_gauge", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "usedVotingPower",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "_tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "vote",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_tokenId", "type": "uint256"},
            {
                "name": "_votes",
                "type": "tuple[]",
                "components": [
                    {"name": "weight", "type": "uint256"},
                    {"name": "gauge", "type": "address"},
                ],
            },
        ],
        "outputs": [],
    },
    {
        "name": "reset",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_tokenId", "type": "uint256"}],
        "outputs": [],
    },
]

CLOCK_ABI = [
    {
        "name": "votingActive",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

VOTING_ESCROW_ABI = [
    {
        "name": "isApprovedOrOwner",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_tokenId", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "votingPowerAt",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_tokenId", "type": "uint256"},
            {"name": "_t", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]
