"""Network tables mapping chain ids to deployed voting contracts."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from .exceptions import ValidationError
from .types import NetworkEntry

logger = logging.getLogger(__name__)

PRODUCTION = "production"
DEVELOPMENT = "development"

# Public networks
PRODUCTION_NETWORKS = (
    NetworkEntry(1, "0x1234567890123456789012345678901234567890", "Ethereum Mainnet"),
    NetworkEntry(11155111, "0x2345678901234567890123456789012345678901", "Sepolia Testnet"),
    NetworkEntry(5, "0x2345678901234567890123456789012345678901", "Goerli Testnet"),
    NetworkEntry(137, "0x3456789012345678901234567890123456789012", "Polygon"),
    NetworkEntry(80001, "0x4567890123456789012345678901234567890123", "Mumbai Testnet"),
)

# Local development chains
DEVELOPMENT_NETWORKS = (
    NetworkEntry(1337, "0xafD7BD6ba24b94bF45d0C09C6D87890F5ad3feBB", "Ganache Local"),
    NetworkEntry(31337, "0x5678901234567890123456789012345678901234", "Hardhat Local"),
)


class NetworkRegistry:
    """Read-only lookup of voting contracts by chain id."""

    def __init__(self, entries: Iterable[NetworkEntry], *, name: str = "custom") -> None:
        self.name = name
        self._entries: dict[int, NetworkEntry] = {}
        for entry in entries:
            if entry.chain_id in self._entries:
                raise ValidationError(
                    f"Duplicate chain id {entry.chain_id} in network table '{name}'",
                    field="chain_id",
                    value=entry.chain_id,
                )
            self._entries[entry.chain_id] = entry

    @classmethod
    def from_mapping(cls, table: Mapping[Any, Any], *, name: str = "custom") -> NetworkRegistry:
        """Build a registry from ``{chain_id: {"contractAddress", "networkName"}}``.

        Values may also be ``(contract_address, network_name)`` pairs.
        """

        entries = []
        for raw_chain_id, value in table.items():
            try:
                chain_id = int(raw_chain_id)
            except (TypeError, ValueError) as exc:
                raise ValidationError(
                    "Network table keys must be chain ids",
                    field="chain_id",
                    value=raw_chain_id,
                ) from exc

            if isinstance(value, Mapping):
                address = value.get("contractAddress") or value.get("contract_address")
                network_name = value.get("networkName") or value.get("network_name")
            else:
                address, network_name = value

            if not address or not network_name:
                raise ValidationError(
                    f"Network table entry for chain {chain_id} is incomplete",
                    field="chain_id",
                    value=chain_id,
                )
            entries.append(NetworkEntry(chain_id, address, str(network_name)))

        return cls(entries, name=name)

    @classmethod
    def from_json(cls, path: str | Path) -> NetworkRegistry:
        """Load a registry from a JSON network table file."""

        table_path = Path(path)
        try:
            payload = json.loads(table_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValidationError(
                f"Unable to read network table {table_path}",
                field="network_table",
                value=str(table_path),
                details={"error": str(exc)},
            ) from exc

        if not isinstance(payload, Mapping):
            raise ValidationError(
                "Network table must be a JSON object keyed by chain id",
                field="network_table",
                value=str(table_path),
            )

        logger.info("Loaded network table from %s", table_path)
        return cls.from_mapping(payload, name=table_path.stem)

    def lookup(self, chain_id: int) -> NetworkEntry | None:
        return self._entries.get(chain_id)

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._entries

    def name_of(self, chain_id: int) -> str:
        entry = self._entries.get(chain_id)
        if entry is None:
            return f"Unknown Network ({chain_id})"
        return entry.network_name

    def supported_names(self) -> list[str]:
        return [entry.network_name for entry in self._entries.values()]

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._entries

    def __iter__(self) -> Iterator[NetworkEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"NetworkRegistry(name={self.name!r}, chains={list(self._entries)})"


DEPLOYMENTS: dict[str, tuple[NetworkEntry, ...]] = {
    PRODUCTION: PRODUCTION_NETWORKS,
    DEVELOPMENT: DEVELOPMENT_NETWORKS,
}


def registry_for(deployment: str) -> NetworkRegistry:
    """Return the network table for a deployment target.

    Raises:
        ValidationError: If the deployment name is unknown
    """
    key = deployment.lower()
    if key not in DEPLOYMENTS:
        raise ValidationError(
            f"Unknown deployment: {deployment}. Must be one of {', '.join(DEPLOYMENTS)}",
            field="deployment",
            value=deployment,
        )
    return NetworkRegistry(DEPLOYMENTS[key], name=key)
