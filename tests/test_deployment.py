"""Tests for contract deployment and the interaction script."""

import asyncio
import json
from types import SimpleNamespace
from typing import Any

import pytest
from conftest import ALICE, GANACHE_ADDRESS, FakeProvider
from hexbytes import HexBytes

from votechain.config import DeploymentConfig, VotingClientConfig
from votechain.deployment import (
    DeploymentRecord,
    deploy_from_config,
    deploy_voting_contract,
    load_artifact,
)
from votechain.exceptions import NetworkError, ValidationError
from votechain.interact import format_candidates, interact_with_contract
from votechain.types import Candidate

DEPLOYED_ADDRESS = "0x" + "de" * 20
DEPLOY_HASH = HexBytes(b"\x0d" * 32)


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / "Voting.json"
    path.write_text(
        json.dumps({"abi": [{"type": "constructor"}], "bytecode": "0x60"}),
        encoding="utf-8",
    )
    return path


class DummyConstructor:
    def __init__(self, factory: "DummyFactory", args: list[str]) -> None:
        self._factory = factory
        self.args = args

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        if self._factory.fail_estimate:
            raise RuntimeError("execution reverted")
        return 1_200_000

    async def transact(self, tx: dict[str, Any]) -> HexBytes:
        self._factory.sent.append(tx)
        return DEPLOY_HASH


class DummyFactory:
    def __init__(self) -> None:
        self.fail_estimate = False
        self.sent: list[dict[str, Any]] = []
        self.constructed: list[DummyConstructor] = []

    def constructor(self, candidates: list[str]) -> DummyConstructor:
        constructor = DummyConstructor(self, candidates)
        self.constructed.append(constructor)
        return constructor


class DeployEth:
    def __init__(self, factory: DummyFactory, receipt: dict[str, Any]) -> None:
        self._factory = factory
        self.receipt = receipt
        self.contract_kwargs: dict[str, Any] = {}

    def contract(self, **kwargs: Any) -> DummyFactory:
        self.contract_kwargs = kwargs
        return self._factory

    @property
    def gas_price(self):
        async def price() -> int:
            return 20_000_000_000

        return price()

    async def wait_for_transaction_receipt(self, tx_hash: Any, timeout: float) -> dict[str, Any]:
        return self.receipt


@pytest.fixture
def deployer(provider: FakeProvider):
    factory = DummyFactory()
    eth = DeployEth(factory, {"status": 1, "contractAddress": DEPLOYED_ADDRESS})
    provider._web3 = SimpleNamespace(eth=eth)
    return provider, factory, eth


class TestDeploymentRecord:
    def test_round_trip_through_file(self, tmp_path):
        record = DeploymentRecord(
            address=GANACHE_ADDRESS,
            transaction_hash="0x" + "0d" * 32,
            network="http://127.0.0.1:7545",
            deployed_at="2024-01-01T00:00:00+00:00",
            candidates=["Alice Johnson", "Bob Smith"],
        )
        path = tmp_path / "deployment.json"

        record.save(path)

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["transactionHash"] == "0x" + "0d" * 32
        assert payload["deployedAt"] == "2024-01-01T00:00:00+00:00"
        assert DeploymentRecord.load(path) == record

    def test_missing_record(self, tmp_path):
        with pytest.raises(ValidationError) as excinfo:
            DeploymentRecord.load(tmp_path / "deployment.json")
        assert "deploy the contract first" in str(excinfo.value)

    def test_record_without_address(self):
        with pytest.raises(ValidationError) as excinfo:
            DeploymentRecord.from_dict({"transactionHash": "0x00"})
        assert excinfo.value.field == "address"


class TestArtifact:
    def test_load_artifact(self, artifact):
        abi, bytecode = load_artifact(artifact)
        assert abi == [{"type": "constructor"}]
        assert bytecode == "0x60"

    def test_missing_artifact(self, tmp_path):
        with pytest.raises(ValidationError) as excinfo:
            load_artifact(tmp_path / "Voting.json")
        assert "truffle compile" in str(excinfo.value)

    @pytest.mark.parametrize(
        "content",
        ["not json", json.dumps({"abi": []}), json.dumps({"abi": [], "bytecode": "0x"})],
    )
    def test_unusable_artifact(self, tmp_path, content):
        path = tmp_path / "Voting.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValidationError):
            load_artifact(path)


class TestDeploy:
    def test_deploys_with_estimated_gas(self, deployer, artifact):
        provider, factory, eth = deployer

        record = asyncio.run(
            deploy_voting_contract(
                provider,
                candidates=["Alice Johnson", "Bob Smith"],
                artifact_path=artifact,
                network="ganache",
                receipt_timeout=5,
            )
        )

        assert eth.contract_kwargs == {"abi": [{"type": "constructor"}], "bytecode": "0x60"}
        assert factory.constructed[0].args == ["Alice Johnson", "Bob Smith"]
        assert factory.sent == [{"from": ALICE, "gas": 1_200_000, "gasPrice": 20_000_000_000}]
        assert record.address.lower() == DEPLOYED_ADDRESS
        assert record.transaction_hash == DEPLOY_HASH.to_0x_hex()
        assert record.network == "ganache"
        assert record.candidates == ["Alice Johnson", "Bob Smith"]

    def test_estimate_failure_is_network_error(self, deployer, artifact):
        provider, factory, _ = deployer
        factory.fail_estimate = True

        with pytest.raises(NetworkError) as excinfo:
            asyncio.run(
                deploy_voting_contract(
                    provider,
                    candidates=["Alice Johnson"],
                    artifact_path=artifact,
                    network="ganache",
                    receipt_timeout=5,
                )
            )
        assert excinfo.value.details["error"] == "execution reverted"
        assert factory.sent == []

    def test_failed_receipt_is_network_error(self, deployer, artifact):
        provider, _, eth = deployer
        eth.receipt = {"status": 0, "contractAddress": None}

        with pytest.raises(NetworkError):
            asyncio.run(
                deploy_voting_contract(
                    provider,
                    candidates=["Alice Johnson"],
                    artifact_path=artifact,
                    network="ganache",
                    receipt_timeout=5,
                )
            )

    def test_deploy_from_config_writes_record(self, deployer, artifact, tmp_path):
        provider, _, _ = deployer
        record_path = tmp_path / "deployment.json"
        config = DeploymentConfig(
            artifact_path=artifact,
            record_path=record_path,
            candidates=("Ada", "Grace"),
        )

        record = asyncio.run(deploy_from_config(config, provider))

        assert DeploymentRecord.load(record_path) == record
        assert record.candidates == ["Ada", "Grace"]


class TestInteract:
    @pytest.fixture
    def record_path(self, tmp_path):
        path = tmp_path / "deployment.json"
        DeploymentRecord(
            address=GANACHE_ADDRESS,
            transaction_hash="0x" + "0d" * 32,
            network="ganache",
            deployed_at="2024-01-01T00:00:00+00:00",
            candidates=["Alice Johnson", "Bob Smith", "Carol Davis"],
        ).save(path)
        return path

    def test_votes_once_and_reports_tally(self, provider, record_path):
        result = asyncio.run(
            interact_with_contract(
                VotingClientConfig(), record_path=record_path, candidate_id=1, provider=provider
            )
        )

        assert result.account == ALICE
        assert result.before.total_votes == 0
        assert result.receipt is not None
        assert result.after is not None
        assert result.after.total_votes == 1
        assert result.after.candidates[0].vote_count == 1
        assert provider.listener_count("chainChanged") == 0

    def test_second_run_does_not_vote_again(self, provider, chain, record_path):
        async def scenario():
            await interact_with_contract(
                VotingClientConfig(), record_path=record_path, provider=provider
            )
            return await interact_with_contract(
                VotingClientConfig(), record_path=record_path, candidate_id=2, provider=provider
            )

        result = asyncio.run(scenario())

        assert result.before.has_voted is True
        assert result.receipt is None
        assert len(chain.contracts[GANACHE_ADDRESS].submitted) == 1

    def test_missing_record(self, provider, tmp_path):
        with pytest.raises(ValidationError):
            asyncio.run(
                interact_with_contract(
                    VotingClientConfig(),
                    record_path=tmp_path / "deployment.json",
                    provider=provider,
                )
            )


def test_format_candidates() -> None:
    lines = format_candidates((Candidate(1, "Alice Johnson", 1), Candidate(2, "Bob Smith", 3)), 4)
    assert lines == [
        "1: Alice Johnson - 1 votes (25.0%)",
        "2: Bob Smith - 3 votes (75.0%)",
    ]
