"""Voting session lifecycle: connect, detect, bind, reload and vote."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from .base import WalletProvider
from .config import VotingClientConfig
from .exceptions import (
    AlreadyVotedError,
    ContractUnavailableError,
    NoProviderError,
    NotConnectedError,
    OperationInProgressError,
    ValidationError,
    VotingError,
)
from .networks import NetworkRegistry
from .resolver import BoundContract, ContractResolver
from .submitter import VoteSubmitter
from .types import (
    Address,
    BindingMode,
    Session,
    SessionState,
    VoteReceipt,
    VotingSnapshot,
)
from .utils import normalise_address
from .wallet import ChainBinding, Subscription

logger = logging.getLogger(__name__)

_BOUND_STATES = (SessionState.READY, SessionState.VOTING)


class SessionController:
    """Drive one wallet session through its states.

    Provider events preempt whatever is in flight: every reset bumps an
    epoch counter and any awaited work that started under an older epoch
    is dropped instead of being applied.
    """

    def __init__(
        self,
        binding: ChainBinding,
        resolver: ContractResolver,
        submitter: VoteSubmitter | None = None,
        *,
        auto_detect: bool = True,
    ) -> None:
        self._binding = binding
        self._resolver = resolver
        self._submitter = submitter or VoteSubmitter()
        self._auto_detect = auto_detect

        self._state = SessionState.DISCONNECTED
        self._session = Session()
        self._mode: BindingMode | None = None
        self._epoch = 0
        self._busy = False
        self._subscriptions: list[Subscription] = []
        self.last_error: VotingError | None = None

    @classmethod
    def from_config(
        cls,
        config: VotingClientConfig,
        provider: WalletProvider | None,
        *,
        registry: NetworkRegistry | None = None,
    ) -> SessionController:
        binding = ChainBinding(provider)
        resolver = ContractResolver(registry or config.registry(), binding)
        submitter = VoteSubmitter(
            gas_limit=config.gas_limit,
            wait_for_receipt=config.wait_for_receipt,
            receipt_timeout=config.receipt_timeout,
        )
        return cls(binding, resolver, submitter, auto_detect=config.auto_detect)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session:
        return self._session

    @property
    def mode(self) -> BindingMode | None:
        return self._mode

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def account(self) -> Address | None:
        return self._session.connected_account

    @property
    def bound(self) -> BoundContract | None:
        return self._submitter.bound

    @property
    def snapshot(self) -> VotingSnapshot | None:
        return self._session.snapshot

    @property
    def network_name(self) -> str | None:
        if self._session.chain_id is None:
            return None
        return self._resolver.registry.name_of(self._session.chain_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> SessionState:
        """Request wallet access and, with auto-detect on, bind the contract."""

        if self._state is not SessionState.DISCONNECTED:
            return self._state

        try:
            self._binding.provider  # Fail fast before registering listeners
        except NoProviderError as exc:
            self.last_error = exc
            raise
        self._subscribe()

        epoch = self._epoch
        self._set_state(SessionState.CONNECTING)
        try:
            account = await self._binding.request_access()
        except VotingError as exc:
            if epoch == self._epoch:
                self.last_error = exc
                self._set_state(SessionState.DISCONNECTED)
            raise

        if epoch != self._epoch:
            logger.warning("Discarding wallet access result after session reset")
            return self._state

        # An accountsChanged event during the request wins over its reply
        if self._session.connected_account is None:
            self._session.connected_account = account
        self.last_error = None
        self._set_state(SessionState.CONNECTED)

        if self._auto_detect:
            return await self.detect_contract()
        return self._state

    async def close(self) -> None:
        """Release provider subscriptions and drop all session state."""

        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._reset("session closed")

    async def __aenter__(self) -> SessionController:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------
    async def detect_contract(self) -> SessionState:
        """Bind to the registry contract of the wallet's current chain."""

        self._require_account()
        self._switch_mode(BindingMode.AUTO)

        epoch = self._epoch
        self._set_state(SessionState.RESOLVING)
        try:
            chain_id = await self._binding.current_chain_id()
            if epoch != self._epoch:
                logger.warning("Discarding contract resolution after session reset")
                return self._state
            self._session.chain_id = chain_id
            bound = self._resolver.resolve(chain_id)
        except VotingError as exc:
            if epoch == self._epoch:
                self._fail_binding(exc)
            raise

        self._apply_binding(bound)
        return self._state

    async def use_manual_address(self, address: str) -> SessionState:
        """Bind to a user-supplied contract address.

        The session becomes READY only if reading the candidate list from
        that address succeeds.
        """

        self._require_account()
        self._switch_mode(BindingMode.MANUAL)

        epoch = self._epoch
        self._set_state(SessionState.RESOLVING)
        try:
            bound = self._resolver.resolve_manual(address)
            chain_id = await self._binding.current_chain_id()
            if epoch != self._epoch:
                logger.warning("Discarding manual binding after session reset")
                return self._state
            self._session.chain_id = chain_id

            probe = VoteSubmitter(bound)
            candidates = await probe.list_candidates()
        except VotingError as exc:
            if epoch == self._epoch:
                self._fail_binding(exc)
            raise

        if epoch != self._epoch:
            logger.warning("Discarding manual binding after session reset")
            return self._state

        self._apply_binding(bound)
        logger.info("Manual contract %s exposes %d candidates", bound.address, len(candidates))
        return self._state

    def _switch_mode(self, mode: BindingMode) -> None:
        self._epoch += 1
        if self._submitter.bound is not None:
            logger.info("Discarding binding to %s", self._submitter.bound.address)
        self._submitter.unbind()
        self._session.bound_contract_address = None
        self._session.snapshot = None
        self._mode = mode
        self._set_state(SessionState.CONNECTED)

    def _apply_binding(self, bound: BoundContract) -> None:
        self._submitter.bind(bound)
        self._session.bound_contract_address = bound.address
        self.last_error = None
        self._set_state(SessionState.READY)

    def _fail_binding(self, exc: VotingError) -> None:
        logger.warning("Contract binding failed: %s", exc)
        self._submitter.unbind()
        self._session.bound_contract_address = None
        self.last_error = exc
        self._set_state(SessionState.CONNECTED)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def refresh(self) -> VotingSnapshot | None:
        """Reload candidates, totals and voter status as one unit.

        Returns ``None`` when the session was reset or switched account
        while the reads were in flight; nothing is published then.
        """

        if self._state not in _BOUND_STATES:
            raise ContractUnavailableError(f"Session is {self._state.value}; no contract bound")

        epoch = self._epoch
        account = self._session.connected_account

        try:
            candidates, total_votes, has_voted = await asyncio.gather(
                self._submitter.list_candidates(),
                self._submitter.total_votes(),
                self._voter_status(account),
            )
        except VotingError as exc:
            if epoch == self._epoch:
                self.last_error = exc
            raise

        if epoch != self._epoch or account != self._session.connected_account:
            logger.warning("Discarding stale reload")
            return None

        snapshot = VotingSnapshot(
            candidates=tuple(candidates),
            total_votes=total_votes,
            has_voted=has_voted,
        )
        self._session.snapshot = snapshot
        self._session.has_voted = has_voted
        return snapshot

    async def _voter_status(self, account: Address | None) -> bool | None:
        if account is None:
            return None
        return await self._submitter.voting_status(account)

    # ------------------------------------------------------------------
    # Vote
    # ------------------------------------------------------------------
    async def cast_vote(self, candidate_id: int) -> VoteReceipt:
        """Submit a vote from the connected account.

        Raises:
            OperationInProgressError: If a vote is already outstanding
            AlreadyVotedError: If this account is known to have voted
        """
        if self._busy:
            raise OperationInProgressError()
        if self._state is not SessionState.READY:
            raise ContractUnavailableError(f"Session is {self._state.value}; cannot vote")

        account = self._session.connected_account
        if account is None:
            raise NotConnectedError()
        if self._session.has_voted:
            exc = AlreadyVotedError(account=account)
            self.last_error = exc
            raise exc

        self._busy = True
        epoch = self._epoch
        self._set_state(SessionState.VOTING)
        try:
            receipt = await self._submitter.cast_vote(candidate_id, account)
        except VotingError as exc:
            if epoch == self._epoch:
                self.last_error = exc
                if isinstance(exc, AlreadyVotedError) and account == self.account:
                    self._session.has_voted = True
                self._set_state(SessionState.READY)
            raise
        finally:
            self._busy = False

        if epoch != self._epoch:
            logger.warning("Session reset while vote %s was pending", receipt.transaction_hash)
            return receipt

        if account == self._session.connected_account:
            self._session.has_voted = True
        self.last_error = None
        self._set_state(SessionState.READY)

        try:
            await self.refresh()
        except VotingError as exc:
            logger.warning("Reload after vote %s failed: %s", receipt.transaction_hash, exc)
        return receipt

    # ------------------------------------------------------------------
    # Provider events
    # ------------------------------------------------------------------
    def _subscribe(self) -> None:
        if self._subscriptions:
            return
        self._subscriptions = [
            self._binding.on_accounts_changed(self._handle_accounts_changed),
            self._binding.on_chain_changed(self._handle_chain_changed),
        ]

    def _handle_chain_changed(self, chain_id: Any) -> None:
        logger.info("Chain changed to %s; resetting session", chain_id)
        self._reset("chain changed")

    def _handle_accounts_changed(self, accounts: Sequence[str]) -> None:
        if not accounts:
            logger.info("Wallet disconnected all accounts")
            self._reset("accounts removed")
            return

        try:
            account = normalise_address(accounts[0], field="account")
        except ValidationError as exc:
            logger.warning("Ignoring malformed account from provider: %s", exc)
            return

        if account == self._session.connected_account:
            return

        logger.info("Account switched to %s", account)
        self._session.connected_account = account
        self._session.has_voted = None
        self._session.snapshot = None
        if self._state is SessionState.DISCONNECTED:
            self._set_state(SessionState.CONNECTED)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_account(self) -> None:
        if self._state is SessionState.DISCONNECTED or self._session.connected_account is None:
            raise NotConnectedError()
        if self._busy:
            raise OperationInProgressError("Cannot rebind while a vote is outstanding")

    def _reset(self, reason: str) -> None:
        self._epoch += 1
        self._submitter.unbind()
        self._session = Session()
        self._mode = None
        self._set_state(SessionState.DISCONNECTED)
        logger.debug("Session reset (%s)", reason)

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.debug("Session state %s -> %s", self._state.value, state.value)
        self._state = state
