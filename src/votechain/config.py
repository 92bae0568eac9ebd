"""Configuration containers for the votechain client."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ValidationError
from .networks import DEVELOPMENT, NetworkRegistry, registry_for

DEFAULT_RPC_URL = "http://127.0.0.1:7545"
DEFAULT_GAS_LIMIT = 100000
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_ARTIFACT_PATH = "build/contracts/Voting.json"
DEFAULT_RECORD_PATH = "deployment.json"
DEFAULT_CANDIDATES = (
    "Alice Johnson",
    "Bob Smith",
    "Carol Davis",
    "David Wilson",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class VotingClientConfig:
    """Settings for a voting session."""

    rpc_url: str = DEFAULT_RPC_URL
    private_key: str | None = None
    deployment: str = DEVELOPMENT
    network_table: str | None = None
    gas_limit: int = DEFAULT_GAS_LIMIT
    auto_detect: bool = True
    contract_address: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    wait_for_receipt: bool = True
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT

    def __post_init__(self) -> None:
        if self.gas_limit <= 0:
            raise ValidationError(
                "Gas limit must be positive", field="gas_limit", value=self.gas_limit
            )
        if self.receipt_timeout <= 0:
            raise ValidationError(
                "Receipt timeout must be positive",
                field="receipt_timeout",
                value=self.receipt_timeout,
            )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> VotingClientConfig:
        """Build a config from environment variables (and a ``.env`` file)."""

        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            rpc_url=env.get("NETWORK_URL", DEFAULT_RPC_URL),
            private_key=env.get("PRIVATE_KEY") or None,
            deployment=env.get("VOTING_DEPLOYMENT", DEVELOPMENT),
            network_table=env.get("VOTING_NETWORK_TABLE") or None,
            gas_limit=_parse_int(env, "VOTING_GAS_LIMIT", DEFAULT_GAS_LIMIT),
            auto_detect=_parse_bool(env, "VOTING_AUTO_DETECT", True),
            contract_address=env.get("VOTING_CONTRACT_ADDRESS") or None,
            request_timeout=_parse_float(env, "VOTING_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            receipt_timeout=_parse_float(env, "VOTING_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
        )

    def registry(self) -> NetworkRegistry:
        """Return the one network table matching this deployment."""

        if self.network_table:
            return NetworkRegistry.from_json(self.network_table)
        return registry_for(self.deployment)


@dataclass(frozen=True)
class DeploymentConfig:
    """Settings for deploying the Voting contract."""

    rpc_url: str = DEFAULT_RPC_URL
    private_key: str | None = None
    artifact_path: Path = Path(DEFAULT_ARTIFACT_PATH)
    record_path: Path = Path(DEFAULT_RECORD_PATH)
    candidates: tuple[str, ...] = field(default_factory=lambda: DEFAULT_CANDIDATES)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValidationError("At least one candidate is required", field="candidates")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> DeploymentConfig:
        if env is None:
            load_dotenv()
            env = os.environ

        raw_candidates = env.get("VOTING_CANDIDATES")
        candidates = (
            tuple(name.strip() for name in raw_candidates.split(",") if name.strip())
            if raw_candidates
            else DEFAULT_CANDIDATES
        )

        return cls(
            rpc_url=env.get("NETWORK_URL", DEFAULT_RPC_URL),
            private_key=env.get("PRIVATE_KEY") or None,
            artifact_path=Path(env.get("VOTING_ARTIFACT_PATH", DEFAULT_ARTIFACT_PATH)),
            record_path=Path(env.get("VOTING_DEPLOYMENT_RECORD", DEFAULT_RECORD_PATH)),
            candidates=candidates,
            request_timeout=_parse_float(env, "VOTING_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            receipt_timeout=_parse_float(env, "VOTING_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
        )


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be an integer", field=key, value=raw) from exc


def _parse_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be a number", field=key, value=raw) from exc


def _parse_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValidationError(f"{key} must be a boolean flag", field=key, value=raw)
