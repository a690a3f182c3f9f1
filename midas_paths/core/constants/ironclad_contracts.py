from midas_paths.core.constants.chains import CHAIN_ID_MODE

IRONCLAD_BY_CHAIN: dict[int, dict[str, str]] = {
    CHAIN_ID_MODE: {
        "lending_pool": "0xB702cE183b4E1Faa574834715E5D4a6378D0eEd3",
        "protocol_data_provider": "0x29563f73De731Ae555093deb795ba4D1E584e42E",
        "iusd": "0xA70266C8F8Cf33647dcFEE763961aFf418D9E1E4",
        "borrower_operations": "0x9571873B4Df31D317d4ED4FE4689915A2F3fF7d4",
        "trove_manager": "0x829746b34F624fdB03171AA4cF4D2675B0F2A2e6",
        "hint_helpers": "0xBdAA7033f0A109A9777ee42a82799642a877Fc4b",
    }
}

TROVE_STATUS: dict[int, str] = {
    0: "nonExistent",
    1: "active",
    2: "closedByOwner",
    3: "closedByLiquidation",
    4: "closedByRedemption",
}
