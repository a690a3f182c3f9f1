from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any

from eth_utils import is_address, to_checksum_address

from midas_paths.core.adapters.BaseAdapter import BaseAdapter
from midas_paths.core.adapters.decorators import operation
from midas_paths.core.clients.MetadataClient import METADATA_CLIENT, MetadataClient
from midas_paths.core.constants.base import ADAPTER_MODE_VOTING
from midas_paths.core.constants.mode_voting_abi import (
    CLOCK_ABI,
    GAUGE_VOTER_ABI,
    VOTING_ESCROW_ABI,
)
from midas_paths.core.constants.mode_voting_contracts import (
    MODE_VOTING_BY_CHAIN,
    TOTAL_VOTE_WEIGHT,
    UNKNOWN_GAUGE_NAME,
    VOTER_TYPES,
)
from midas_paths.core.errors import LedgerError, ValidationError
from midas_paths.core.ledger import LedgerClient
from midas_paths.core.utils.units import format_units

VOTE_DECIMALS = 18


def _eligibility_url(metadata: Mapping[str, Any]) -> str | None:
    for resource in metadata.get("resources") or []:
        if not isinstance(resource, Mapping):
            continue
        if resource.get("field") == "Project Details" and "Eligibility Form" in str(
            resource.get("value") or ""
        ):
            return resource.get("url")
    return None


class ModeVotingAdapter(BaseAdapter):
    """Gauge voting with veMODE / veBPT NFTs on Mode."""

    adapter_type = ADAPTER_MODE_VOTING

    def __init__(
        self,
        ledger: LedgerClient,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int | None = None,
        metadata_client: MetadataClient | None = None,
    ) -> None:
        super().__init__("mode_voting_adapter", ledger, config, chain_id=chain_id)
        contracts = MODE_VOTING_BY_CHAIN.get(self.chain_id)
        if contracts is None:
            raise ValueError(f"Mode voting is not deployed on chain {self.chain_id}")
        self.contracts = {
            voter_type: {k: to_checksum_address(v) for k, v in entry.items()}
            for voter_type, entry in contracts.items()
        }
        self.metadata_client = metadata_client or METADATA_CLIENT

    def _contracts(self, operation_name: str, voter_type: str) -> dict[str, str]:
        if voter_type not in VOTER_TYPES:
            raise ValidationError(
                operation_name,
                f"voter_type must be one of {', '.join(VOTER_TYPES)}",
                details={"voter_type": voter_type},
            )
        return self.contracts[voter_type]

    async def _gauge_metadata(self, uri: str) -> dict[str, Any] | None:
        # Best effort: the client logs and returns None on failure
        if not uri:
            return None
        return await self.metadata_client.get_gauge_metadata(uri)

    @operation("get_all_gauges")
    async def get_all_gauges(self, voter_type: str) -> dict[str, Any]:
        voter = self._contracts("get_all_gauges", voter_type)["voter"]
        addresses = await self.ledger.read(voter, GAUGE_VOTER_ABI, "getAllGauges")

        gauges: list[dict[str, Any]] = []
        for address in addresses:
            address = to_checksum_address(address)
            data = await self.ledger.read(voter, GAUGE_VOTER_ABI, "getGauge", (address,))
            votes = int(
                await self.ledger.read(voter, GAUGE_VOTER_ABI, "gaugeVotes", (address,))
            )
            metadata = await self._gauge_metadata(str(data[2]))
            name = (metadata or {}).get("name") or UNKNOWN_GAUGE_NAME
            gauges.append(
                {
                    "address": address,
                    "name": name,
                    "votes": format_units(votes, VOTE_DECIMALS),
                    "metadata_available": metadata is not None,
                }
            )
        self.logger.info(f"Loaded {len(gauges)} {voter_type} gauges")
        return {"voter_type": voter_type, "gauges": gauges}

    async def _resolve_gauge(
        self,
        operation_name: str,
        identifier: str,
        by_address: bool,
        gauges: list[dict[str, Any]],
    ) -> str:
        if by_address:
            if not is_address(identifier):
                raise ValidationError(
                    operation_name, f"invalid gauge address: {identifier}"
                )
            return to_checksum_address(identifier)
        needle = identifier.strip().lower()
        for gauge in gauges:
            if needle and needle in str(gauge["name"]).lower():
                self.logger.debug(f"Matched '{identifier}' to {gauge['name']} ({gauge['address']})")
                return gauge["address"]
        raise ValidationError(
            operation_name, f"could not find a gauge matching the name: {identifier}"
        )

    @operation("get_gauge_info")
    async def get_gauge_info(
        self, voter_type: str, identifier: str, by_address: bool = False
    ) -> dict[str, Any]:
        voter = self._contracts("get_gauge_info", voter_type)["voter"]
        gauges = [] if by_address else (await self.get_all_gauges(voter_type))["gauges"]
        address = await self._resolve_gauge("get_gauge_info", identifier, by_address, gauges)

        data = await self.ledger.read(voter, GAUGE_VOTER_ABI, "getGauge", (address,))
        votes = int(await self.ledger.read(voter, GAUGE_VOTER_ABI, "gaugeVotes", (address,)))
        metadata_uri = str(data[2])
        metadata = await self._gauge_metadata(metadata_uri)
        meta = metadata or {}
        return {
            "address": address,
            "active": bool(data[0]),
            "created": int(data[1]),
            "metadata_uri": metadata_uri,
            "total_votes": format_units(votes, VOTE_DECIMALS),
            "name": meta.get("name") or UNKNOWN_GAUGE_NAME,
            "description": meta.get("description"),
            "logo": meta.get("logo"),
            "eligibility_url": _eligibility_url(meta),
            "metadata_available": metadata is not None,
        }

    async def _prepare_votes(
        self, operation_name: str, voter_type: str, votes: Sequence[Mapping[str, Any]]
    ) -> list[tuple[int, str]]:
        """Validate weights and resolve every gauge before anything is sent."""
        if not votes:
            raise ValidationError(operation_name, "at least one vote is required")
        weights = [int(v["weight"]) for v in votes]
        if any(w <= 0 for w in weights):
            raise ValidationError(operation_name, "vote weights must be positive")
        if sum(weights) != TOTAL_VOTE_WEIGHT:
            raise ValidationError(
                operation_name,
                f"total vote weight must equal {TOTAL_VOTE_WEIGHT}",
                details={"total_weight": sum(weights)},
            )

        by_name = [v for v in votes if not v.get("is_address", False)]
        gauges = (await self.get_all_gauges(voter_type))["gauges"] if by_name else []
        resolved = []
        for vote, weight in zip(votes, weights, strict=True):
            address = await self._resolve_gauge(
                operation_name,
                str(vote["gauge"]),
                bool(vote.get("is_address", False)),
                gauges,
            )
            resolved.append((weight, address))
        return resolved

    async def _check_can_vote(
        self, operation_name: str, contracts: dict[str, str], token_id: int
    ) -> None:
        active = await self.ledger.read(contracts["clock"], CLOCK_ABI, "votingActive")
        if not active:
            raise ValidationError(operation_name, "voting is not currently active")
        caller = self.ledger.current_address()
        approved = await self.ledger.read(
            contracts["voting_escrow"],
            VOTING_ESCROW_ABI,
            "isApprovedOrOwner",
            (caller, int(token_id)),
        )
        if not approved:
            raise ValidationError(
                operation_name,
                f"{caller} is not approved or owner of token {token_id}",
            )

    @operation("vote")
    async def vote(
        self, voter_type: str, token_id: int, votes: Sequence[Mapping[str, Any]]
    ) -> str:
        contracts = self._contracts("vote", voter_type)
        resolved = await self._prepare_votes("vote", voter_type, votes)
        await self._check_can_vote("vote", contracts, token_id)
        tx = await self.ledger.send_transaction(
            contracts["voter"], GAUGE_VOTER_ABI, "vote", (int(token_id), resolved)
        )
        self.logger.info(f"step=vote token_id={token_id} gauges={len(resolved)} tx={tx}")
        return tx

    @operation("change_votes")
    async def change_votes(
        self, voter_type: str, token_id: int, votes: Sequence[Mapping[str, Any]]
    ) -> dict[str, str]:
        contracts = self._contracts("change_votes", voter_type)
        resolved = await self._prepare_votes("change_votes", voter_type, votes)
        await self._check_can_vote("change_votes", contracts, token_id)

        reset_tx = await self.ledger.send_transaction(
            contracts["voter"], GAUGE_VOTER_ABI, "reset", (int(token_id),)
        )
        self.logger.info(f"step=reset token_id={token_id} tx={reset_tx}")
        used = int(
            await self.ledger.read(
                contracts["voter"], GAUGE_VOTER_ABI, "usedVotingPower", (int(token_id),)
            )
        )
        if used != 0:
            raise LedgerError(
                "change_votes",
                "voting power still allocated after reset",
                details={"used_voting_power": str(used), "txn_hash": reset_tx},
            )
        vote_tx = await self.ledger.send_transaction(
            contracts["voter"], GAUGE_VOTER_ABI, "vote", (int(token_id), resolved)
        )
        self.logger.info(f"step=vote token_id={token_id} gauges={len(resolved)} tx={vote_tx}")
        return {"reset_tx": reset_tx, "vote_tx": vote_tx}

    @operation("get_voting_power")
    async def get_voting_power(self, voter_type: str, token_id: int) -> dict[str, Any]:
        contracts = self._contracts("get_voting_power", voter_type)
        total = int(
            await self.ledger.read(
                contracts["voting_escrow"],
                VOTING_ESCROW_ABI,
                "votingPowerAt",
                (int(token_id), int(time.time())),
            )
        )
        used = int(
            await self.ledger.read(
                contracts["voter"], GAUGE_VOTER_ABI, "usedVotingPower", (int(token_id),)
            )
        )
        return {
            "voter_type": voter_type,
            "token_id": str(token_id),
            "total_voting_power": format_units(total, VOTE_DECIMALS),
            "used_voting_power": format_units(used, VOTE_DECIMALS),
            "remaining_voting_power": format_units(max(total - used, 0), VOTE_DECIMALS),
        }
