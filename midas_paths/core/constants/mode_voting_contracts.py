from midas_paths.core.constants.chains import CHAIN_ID_MODE

VOTER_TYPES = ("veMODE", "veBPT")

MODE_VOTING_BY_CHAIN: dict[int, dict[str, dict[str, str]]] = {
    CHAIN_ID_MODE: {
        "veMODE": {
            "voter": "0x71439Ae82068E19ea90e4F506c74936aE170Cf58",
            "clock": "0x66CC481755f8a9d415e75d29C17B0E3eF2Af70bD",
            "voting_escrow": "0xff8AB822b8A853b01F9a9E9465321d6Fe77c9D2F",
        },
        "veBPT": {
            "voter": "0x2aA8A5C1Af4EA11A1f1F10f3b73cfB30419F77Fb",
            "clock": "0x6d1D6277fBB117d77782a85120796BCb08cAae8a",
            "voting_escrow": "0x9c2eFe2a1FBfb601125Bb07a3D5bC6EC91F91e01",
        },
    }
}

TOTAL_VOTE_WEIGHT = 100
UNKNOWN_GAUGE_NAME = "Unknown"
