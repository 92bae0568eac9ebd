from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable, Sequence
from types import SimpleNamespace
from typing import Any

import pytest
from hexbytes import HexBytes
from web3 import Web3

from votechain.base import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    USER_REJECTED_REQUEST,
    ProviderRpcError,
    WalletProvider,
)
from votechain.networks import NetworkRegistry

ALICE = Web3.to_checksum_address("0x" + "a1" * 20)
BOB = Web3.to_checksum_address("0x" + "b0" * 20)
CAROL = Web3.to_checksum_address("0x" + "c0" * 20)

SEPOLIA_ADDRESS = Web3.to_checksum_address("0x" + "aa" * 20)
GANACHE_ADDRESS = Web3.to_checksum_address("0x" + "bb" * 20)
EMPTY_ADDRESS = Web3.to_checksum_address("0x" + "ee" * 20)

SEPOLIA = 11155111
GANACHE = 1337

VOTE_GAS = 60000


class FakeVotingContract:
    """In-memory stand-in for a deployed Voting contract."""

    def __init__(self, chain: FakeChain, names: Sequence[str]) -> None:
        self._chain = chain
        self.candidates = [[index, name, 0] for index, name in enumerate(names, start=1)]
        self.voters: set[str] = set()
        self.submitted: list[dict[str, Any]] = []
        self.vote_gate: asyncio.Event | None = None
        # Mine duplicate votes as reverted receipts instead of failing at send time
        self.mine_reverts = False
        self.functions = SimpleNamespace(
            getAllCandidates=lambda: FakeFunction(
                lambda: [tuple(entry) for entry in self.candidates]
            ),
            getVoterStatus=lambda voter: FakeFunction(lambda: voter in self.voters),
            getTotalVotes=lambda: FakeFunction(lambda: len(self.voters)),
            candidatesCount=lambda: FakeFunction(lambda: len(self.candidates)),
            vote=lambda candidate_id: FakeFunction(
                None, transact=lambda tx: self._vote(candidate_id, tx)
            ),
        )

    async def _vote(self, candidate_id: int, tx: dict[str, Any]) -> HexBytes:
        self.submitted.append(dict(tx))
        if self.vote_gate is not None:
            await self.vote_gate.wait()
        if self._chain.reject_signing:
            raise ProviderRpcError(
                "MetaMask Tx Signature: User denied transaction signature.",
                code=USER_REJECTED_REQUEST,
            )

        voter = tx["from"]
        if voter in self.voters and self.mine_reverts:
            return self._chain.mine(status=0, gas_used=23000)
        if voter in self.voters:
            raise RuntimeError(
                "VM Exception while processing transaction: revert You have already voted"
            )
        if not 1 <= candidate_id <= len(self.candidates):
            raise RuntimeError(
                "VM Exception while processing transaction: revert Invalid candidate ID"
            )

        gas = tx.get("gas", 0)
        if gas < VOTE_GAS:
            return self._chain.mine(status=0, gas_used=gas)

        self.voters.add(voter)
        self.candidates[candidate_id - 1][2] += 1
        return self._chain.mine(status=1, gas_used=VOTE_GAS)


class EmptyAccount:
    """An address with no code: every call fails to decode."""

    def __init__(self, address: str) -> None:
        self.functions = SimpleNamespace(
            **{
                name: self._failing(name, address)
                for name in (
                    "getAllCandidates",
                    "getVoterStatus",
                    "getTotalVotes",
                    "candidatesCount",
                    "vote",
                )
            }
        )

    @staticmethod
    def _failing(name: str, address: str) -> Callable[..., FakeFunction]:
        def fail() -> Any:
            raise RuntimeError(
                f"Could not decode contract function call to {name} with return data: b'', "
                f"output_types: ['uint256']. Is {address} a contract?"
            )

        async def fail_transact(tx: dict[str, Any]) -> Any:
            fail()

        return lambda *args: FakeFunction(fail, transact=fail_transact)


class FakeFunction:
    def __init__(
        self,
        result: Callable[[], Any] | None,
        *,
        transact: Callable[[dict[str, Any]], Any] | None = None,
    ) -> None:
        self._result = result
        self._transact = transact

    async def call(self) -> Any:
        assert self._result is not None
        return self._result()

    async def transact(self, tx: dict[str, Any]) -> Any:
        assert self._transact is not None
        return await self._transact(tx)


class FakeChain:
    """Contracts and receipts of one fake network."""

    def __init__(self) -> None:
        self.contracts: dict[str, FakeVotingContract] = {}
        self.receipts: dict[bytes, dict[str, Any]] = {}
        self.reject_signing = False
        self.contract_requests: list[str] = []
        self._block = 0

    def deploy(self, address: str, names: Sequence[str]) -> FakeVotingContract:
        contract = FakeVotingContract(self, names)
        self.contracts[Web3.to_checksum_address(address)] = contract
        return contract

    def mine(self, *, status: int, gas_used: int) -> HexBytes:
        self._block += 1
        tx_hash = HexBytes(self._block.to_bytes(32, "big"))
        self.receipts[bytes(tx_hash)] = {
            "status": status,
            "gasUsed": gas_used,
            "blockNumber": self._block,
            "transactionHash": tx_hash,
        }
        return tx_hash

    def contract(self, address: str, abi: Any) -> Any:
        self.contract_requests.append(address)
        return self.contracts.get(address) or EmptyAccount(address)

    async def wait_for_transaction_receipt(self, tx_hash: Any, timeout: float) -> dict[str, Any]:
        return self.receipts[bytes(tx_hash)]


class FakeProvider(WalletProvider):
    """Wallet provider double with controllable replies and events."""

    def __init__(self, chain: FakeChain, *, chain_id: int, accounts: Sequence[str]) -> None:
        self.chain = chain
        self.chain_id = chain_id
        self.accounts = list(accounts)
        self.deny_access = False
        self.chain_id_gate: asyncio.Event | None = None
        self.access_gate: asyncio.Event | None = None
        self.requests: list[str] = []
        self._listeners: defaultdict[str, list[Callable[[Any], None]]] = defaultdict(list)
        self._web3 = SimpleNamespace(
            eth=SimpleNamespace(
                contract=chain.contract,
                wait_for_transaction_receipt=chain.wait_for_transaction_receipt,
            )
        )

    @property
    def web3(self) -> Any:
        return self._web3

    async def request(self, method: str, params: Sequence[Any] | None = None) -> Any:
        self.requests.append(method)
        if method == "eth_requestAccounts":
            if self.deny_access:
                raise ProviderRpcError("User rejected the request.", code=USER_REJECTED_REQUEST)
            accounts = list(self.accounts)
            if self.access_gate is not None:
                await self.access_gate.wait()
            return accounts
        if method == "eth_accounts":
            return list(self.accounts)
        if method == "eth_chainId":
            if self.chain_id_gate is not None:
                await self.chain_id_gate.wait()
            return hex(self.chain_id)
        raise ProviderRpcError(f"Unsupported method {method}", code=4200)

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Callable[[Any], None]) -> None:
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def switch_chain(self, chain_id: int) -> None:
        self.chain_id = chain_id
        for handler in list(self._listeners[CHAIN_CHANGED]):
            handler(hex(chain_id))

    def switch_accounts(self, accounts: Sequence[str]) -> None:
        self.accounts = list(accounts)
        for handler in list(self._listeners[ACCOUNTS_CHANGED]):
            handler(list(accounts))


@pytest.fixture
def chain() -> FakeChain:
    fake = FakeChain()
    fake.deploy(SEPOLIA_ADDRESS, ["Alice Johnson", "Bob Smith", "Carol Davis"])
    fake.deploy(GANACHE_ADDRESS, ["Alice Johnson", "Bob Smith", "Carol Davis"])
    return fake


@pytest.fixture
def provider(chain: FakeChain) -> FakeProvider:
    return FakeProvider(chain, chain_id=GANACHE, accounts=[ALICE])


@pytest.fixture
def registry() -> NetworkRegistry:
    return NetworkRegistry.from_mapping(
        {
            SEPOLIA: (SEPOLIA_ADDRESS, "Sepolia Testnet"),
            GANACHE: (GANACHE_ADDRESS, "Ganache Local"),
        },
        name="test",
    )
