"""Type definitions and data models for the votechain client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from web3 import Web3
from web3.types import ChecksumAddress

from .exceptions import ValidationError

Address = str  # Ethereum address


class SessionState(str, Enum):
    """Lifecycle states of a voting session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RESOLVING = "resolving"
    READY = "ready"
    VOTING = "voting"


class BindingMode(str, Enum):
    """How the session found its contract address."""

    AUTO = "auto"
    MANUAL = "manual"


@dataclass(frozen=True)
class NetworkEntry:
    """A deployed voting contract on one chain."""

    chain_id: int
    contract_address: ChecksumAddress
    network_name: str

    def __post_init__(self) -> None:
        address = self.contract_address
        # Tables are hand-maintained; accept any letter case
        if not isinstance(address, str) or not Web3.is_address(address.lower()):
            raise ValidationError(
                "Invalid contract address in network table",
                field="contract_address",
                value=self.contract_address,
            )
        object.__setattr__(
            self, "contract_address", Web3.to_checksum_address(address.lower())
        )


@dataclass(frozen=True)
class Candidate:
    """A candidate as reported by the voting contract."""

    id: int
    name: str
    vote_count: int

    @classmethod
    def from_contract(cls, entry: Any) -> Candidate:
        """Build a candidate from a decoded ``Voting.Candidate`` struct.

        web3 returns structs as plain tuples unless ``decode_tuples`` is
        enabled, in which case they arrive as named mappings.
        """

        if isinstance(entry, Mapping):
            raw_id = entry.get("id")
            name = entry.get("name")
            raw_votes = entry.get("voteCount")
        else:
            try:
                raw_id, name, raw_votes = entry
            except (TypeError, ValueError) as exc:
                raise ValidationError(
                    "Unexpected candidate struct layout",
                    field="candidate",
                    value=entry,
                    details={"error": str(exc)},
                ) from exc

        try:
            return cls(id=int(raw_id), name=str(name), vote_count=int(raw_votes))
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "Unable to parse candidate struct",
                field="candidate",
                value=entry,
                details={"error": str(exc)},
            ) from exc


@dataclass(frozen=True)
class VoteReceipt:
    """Result of a successful vote submission."""

    transaction_hash: str
    candidate_id: int | None = None
    voter: Address | None = None
    block_number: int | None = None


@dataclass(frozen=True)
class VotingSnapshot:
    """Candidates, totals and voter status read together in one reload."""

    candidates: tuple[Candidate, ...]
    total_votes: int
    has_voted: bool | None


@dataclass
class Session:
    """Client-side state for one wallet connection.

    ``has_voted`` is ``None`` while the voter status is unknown.
    """

    connected_account: Address | None = None
    chain_id: int | None = None
    bound_contract_address: Address | None = None
    has_voted: bool | None = None
    snapshot: VotingSnapshot | None = None
