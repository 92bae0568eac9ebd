"""Deploy the Voting contract and record where it went."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hexbytes import HexBytes

from .base import WalletProvider
from .config import DeploymentConfig
from .exceptions import NetworkError, ValidationError
from .providers import RPCWalletProvider
from .utils import normalise_address
from .wallet import ChainBinding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentRecord:
    """Side record of a deployment, stored as JSON next to the project."""

    address: str
    transaction_hash: str
    network: str
    deployed_at: str
    candidates: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "transactionHash": self.transaction_hash,
            "network": self.network,
            "deployedAt": self.deployed_at,
            "candidates": list(self.candidates),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeploymentRecord:
        try:
            return cls(
                address=normalise_address(data["address"]),
                transaction_hash=str(data["transactionHash"]),
                network=str(data.get("network", "")),
                deployed_at=str(data.get("deployedAt", "")),
                candidates=[str(name) for name in data.get("candidates", [])],
            )
        except KeyError as exc:
            raise ValidationError(
                f"Deployment record is missing {exc.args[0]!r}",
                field=str(exc.args[0]),
            ) from exc

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        logger.info("Deployment info saved to %s", path)

    @classmethod
    def load(cls, path: str | Path) -> DeploymentRecord:
        record_path = Path(path)
        if not record_path.exists():
            raise ValidationError(
                "No deployment found. Please deploy the contract first.",
                field="record_path",
                value=str(record_path),
            )
        try:
            payload = json.loads(record_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Deployment record {record_path} is not valid JSON",
                field="record_path",
                value=str(record_path),
                details={"error": str(exc)},
            ) from exc
        return cls.from_dict(payload)


def load_artifact(path: str | Path) -> tuple[list[dict[str, Any]], str]:
    """Return ``(abi, bytecode)`` from a compiled Truffle/Hardhat artifact."""

    artifact_path = Path(path)
    if not artifact_path.exists():
        raise ValidationError(
            "Contract not compiled. Please run: truffle compile",
            field="artifact_path",
            value=str(artifact_path),
        )

    try:
        artifact = json.loads(artifact_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(
            f"Artifact {artifact_path} is not valid JSON",
            field="artifact_path",
            value=str(artifact_path),
            details={"error": str(exc)},
        ) from exc

    abi = artifact.get("abi")
    bytecode = artifact.get("bytecode")
    if not isinstance(abi, list) or not bytecode or bytecode == "0x":
        raise ValidationError(
            "Artifact does not contain an ABI and deployable bytecode",
            field="artifact_path",
            value=str(artifact_path),
        )
    return abi, bytecode


async def deploy_voting_contract(
    provider: WalletProvider,
    *,
    candidates: Sequence[str],
    artifact_path: str | Path,
    network: str,
    receipt_timeout: float,
) -> DeploymentRecord:
    """Deploy ``Voting(candidates)`` from the provider's first account."""

    if not candidates:
        raise ValidationError("At least one candidate is required", field="candidates")

    abi, bytecode = load_artifact(artifact_path)
    binding = ChainBinding(provider)
    deployer = await binding.request_access()
    logger.info("Deploying from account %s with candidates %s", deployer, list(candidates))

    web3 = provider.web3
    factory = web3.eth.contract(abi=abi, bytecode=bytecode)
    constructor = factory.constructor(list(candidates))

    try:
        gas = await constructor.estimate_gas({"from": deployer})
        logger.info("Estimated gas: %s", gas)
        gas_price = await web3.eth.gas_price
        tx_hash = await constructor.transact({"from": deployer, "gas": gas, "gasPrice": gas_price})
        receipt = await web3.eth.wait_for_transaction_receipt(tx_hash, timeout=receipt_timeout)
    except Exception as exc:
        raise NetworkError(
            "Deployment failed",
            endpoint=network,
            details={"error": str(exc)},
        ) from exc

    address = receipt.get("contractAddress")
    if receipt.get("status", 1) != 1 or not address:
        raise NetworkError(
            "Deployment transaction did not create a contract",
            endpoint=network,
            details={"tx_hash": HexBytes(tx_hash).to_0x_hex()},
        )

    record = DeploymentRecord(
        address=normalise_address(address),
        transaction_hash=HexBytes(tx_hash).to_0x_hex(),
        network=network,
        deployed_at=datetime.now(timezone.utc).isoformat(),
        candidates=list(candidates),
    )
    logger.info("Contract deployed at %s (tx %s)", record.address, record.transaction_hash)
    return record


async def deploy_from_config(
    config: DeploymentConfig, provider: WalletProvider | None = None
) -> DeploymentRecord:
    """Deploy with ``config`` and write the deployment record."""

    provider = provider or RPCWalletProvider(
        config.rpc_url,
        private_key=config.private_key,
        request_timeout=config.request_timeout,
    )
    record = await deploy_voting_contract(
        provider,
        candidates=config.candidates,
        artifact_path=config.artifact_path,
        network=config.rpc_url,
        receipt_timeout=config.receipt_timeout,
    )
    record.save(config.record_path)
    return record
