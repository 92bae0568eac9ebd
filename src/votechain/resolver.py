"""Resolve the voting contract to talk to for the active chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from web3 import AsyncWeb3
from web3.contract import AsyncContract
from web3.types import ChecksumAddress

from .abi import Voting_abi
from .exceptions import UnsupportedNetworkError
from .networks import NetworkRegistry
from .types import BindingMode
from .utils import normalise_address
from .wallet import ChainBinding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundContract:
    """A contract handle bound to one address."""

    address: ChecksumAddress
    contract: AsyncContract
    web3: AsyncWeb3
    mode: BindingMode
    chain_id: int | None = None
    network_name: str | None = None


class ContractResolver:
    """Turn a chain id or a manual address into a :class:`BoundContract`."""

    def __init__(
        self,
        registry: NetworkRegistry,
        binding: ChainBinding,
        abi: list[dict[str, Any]] | None = None,
    ) -> None:
        self._registry = registry
        self._binding = binding
        self._abi = abi if abi is not None else Voting_abi

    @property
    def registry(self) -> NetworkRegistry:
        return self._registry

    def resolve(self, chain_id: int) -> BoundContract:
        """Bind to the registered contract for ``chain_id``.

        Raises:
            UnsupportedNetworkError: If the chain is not in the registry
        """
        entry = self._registry.lookup(chain_id)
        if entry is None:
            raise UnsupportedNetworkError(
                chain_id,
                self._registry.supported_names(),
                details={"network_name": self._registry.name_of(chain_id)},
            )

        logger.info(
            "Resolved %s (chain %s) to contract %s",
            entry.network_name,
            chain_id,
            entry.contract_address,
        )
        return self._bind(
            entry.contract_address,
            BindingMode.AUTO,
            chain_id=chain_id,
            network_name=entry.network_name,
        )

    def resolve_manual(self, address: str) -> BoundContract:
        """Bind directly to a user-supplied address.

        The address is not checked against the voting interface here; a
        wrong address surfaces as ``RemoteCallFailedError`` on first read.
        """
        checksum = normalise_address(address, field="contract_address")
        logger.info("Binding to manually supplied contract %s", checksum)
        return self._bind(checksum, BindingMode.MANUAL)

    def _bind(
        self,
        address: ChecksumAddress,
        mode: BindingMode,
        *,
        chain_id: int | None = None,
        network_name: str | None = None,
    ) -> BoundContract:
        web3 = self._binding.web3
        contract = web3.eth.contract(address=address, abi=self._abi)
        return BoundContract(
            address=address,
            contract=contract,
            web3=web3,
            mode=mode,
            chain_id=chain_id,
            network_name=network_name,
        )
