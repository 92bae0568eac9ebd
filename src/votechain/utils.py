"""Utility functions for the votechain client."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.types import ChecksumAddress

from .exceptions import ValidationError
from .types import Candidate


def parse_chain_id(value: Any) -> int:
    """Parse a chain id reported as an int or a hex/decimal string."""
    if isinstance(value, bool):
        raise ValidationError("Invalid chain id", field="chain_id", value=value)

    if isinstance(value, int):
        chain_id = value
    elif isinstance(value, str):
        text = value.strip().lower()
        try:
            chain_id = int(text, 16) if text.startswith("0x") else int(text)
        except ValueError as exc:
            raise ValidationError("Invalid chain id", field="chain_id", value=value) from exc
    else:
        raise ValidationError("Invalid chain id", field="chain_id", value=value)

    if chain_id <= 0:
        raise ValidationError("Chain id must be positive", field="chain_id", value=value)
    return chain_id


def normalise_address(address: Any, field: str = "address") -> ChecksumAddress:
    """Return the checksum form of an address, rejecting malformed input."""
    if not isinstance(address, str) or not Web3.is_address(address.strip()):
        raise ValidationError("Invalid Ethereum address", field=field, value=address)
    return Web3.to_checksum_address(address.strip())


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt


def short_address(address: str, chars: int = 4) -> str:
    """Abbreviate an address for display, e.g. ``0x12...5678``."""
    if len(address) <= 2 * chars + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def vote_percentage(vote_count: int, total_votes: int) -> float:
    """Share of the total votes, in percent rounded to one decimal."""
    if total_votes <= 0:
        return 0.0
    return round(vote_count / total_votes * 100, 1)


def sort_by_votes(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Order candidates for display: most votes first, ties by id."""
    return sorted(candidates, key=lambda candidate: (-candidate.vote_count, candidate.id))
