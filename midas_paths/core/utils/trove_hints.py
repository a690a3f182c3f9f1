"""Approximate insertion hints for the iUSD sorted-troves list.

Opening a trove inserts it into a list kept sorted by nominal collateral
ratio. Passing a nearby address as the upper hint lets the insertion skip
most of the list walk. The probe is randomized on-chain (``getApproxHint``),
so the seed comes from an injected ``random.Random`` and tests can fix it.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from loguru import logger

from midas_paths.core.constants.base import (
    HINT_SEED_UPPER_BOUND,
    HINT_TRIALS_FACTOR,
    ZERO_ADDRESS,
)
from midas_paths.core.constants.erc20_abi import ERC20_ABI
from midas_paths.core.constants.ironclad_abi import HINT_HELPERS_ABI, TROVE_MANAGER_ABI
from midas_paths.core.ledger import LedgerClient


@dataclass(frozen=True)
class TroveHints:
    upper_hint: str
    lower_hint: str = ZERO_ADDRESS

    @property
    def degraded(self) -> bool:
        return self.upper_hint == ZERO_ADDRESS


def num_trials(trove_count: int) -> int:
    """``ceil(15 * sqrt(n))`` in exact integer math, never less than 1."""
    if trove_count < 0:
        raise ValueError("trove_count must be non-negative")
    target = HINT_TRIALS_FACTOR * HINT_TRIALS_FACTOR * trove_count
    root = math.isqrt(target)
    if root * root < target:
        root += 1
    return max(1, root)


async def find_trove_hints(
    ledger: LedgerClient,
    *,
    trove_manager: str,
    hint_helpers: str,
    collateral: str,
    collateral_amount: int,
    debt: int,
    rng: random.Random,
) -> TroveHints:
    """Probe the sorted list for an upper hint near the new trove's NICR.

    The lower hint is always the zero address; the insertion corrects an
    approximate hint itself. Any read failure degrades to a zero/zero pair,
    which keeps ``openTrove`` valid at a higher gas cost.
    """
    try:
        count = int(
            await ledger.read(
                trove_manager, TROVE_MANAGER_ABI, "getTroveOwnersCount", (collateral,)
            )
        )
        decimals = int(await ledger.read(collateral, ERC20_ABI, "decimals"))
        nicr = int(
            await ledger.read(
                hint_helpers,
                HINT_HELPERS_ABI,
                "computeNominalCR",
                (collateral_amount, debt, decimals),
            )
        )
        trials = num_trials(count)
        seed = rng.randrange(HINT_SEED_UPPER_BOUND)
        result = await ledger.read(
            hint_helpers,
            HINT_HELPERS_ABI,
            "getApproxHint",
            (collateral, nicr, trials, seed),
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"Trove hint lookup failed, using zero hints: {exc}")
        return TroveHints(upper_hint=ZERO_ADDRESS)

    logger.debug(
        f"Trove hint for {collateral}: troves={count} nicr={nicr} "
        f"trials={trials} seed={seed} -> {result[0]}"
    )
    return TroveHints(upper_hint=str(result[0]))
