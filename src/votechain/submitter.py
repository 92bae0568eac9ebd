"""Read queries and vote submission against a bound Voting contract."""

from __future__ import annotations

import logging
from typing import Any

from hexbytes import HexBytes

from .base import USER_REJECTED_REQUEST
from .config import DEFAULT_GAS_LIMIT, DEFAULT_RECEIPT_TIMEOUT
from .exceptions import (
    AlreadyVotedError,
    ContractUnavailableError,
    NotConnectedError,
    RemoteCallFailedError,
    ResourceLimitExceededError,
    TransactionDeniedError,
    UnclassifiedRemoteError,
    ValidationError,
    VotingError,
)
from .resolver import BoundContract
from .types import Address, Candidate, VoteReceipt
from .utils import normalise_address

logger = logging.getLogger(__name__)

_ALREADY_VOTED_MARKERS = ("already voted",)
_DENIED_MARKERS = ("denied", "user rejected")
_OUT_OF_GAS_MARKERS = (
    "out of gas",
    "gas required exceeds",
    "intrinsic gas too low",
)


def classify_error(
    exc: BaseException,
    *,
    gas_limit: int | None = None,
    account: str | None = None,
) -> VotingError:
    """Map a provider/contract failure onto the voting error taxonomy.

    Classification is by message wording, which is owned by the wallet
    and the contract; anything unrecognised becomes
    ``UnclassifiedRemoteError``.
    """
    if isinstance(exc, VotingError):
        return exc

    text = str(exc)
    lowered = text.lower()
    details = {"error": text}

    if any(marker in lowered for marker in _ALREADY_VOTED_MARKERS):
        return AlreadyVotedError(account=account, details=details)

    if getattr(exc, "code", None) == USER_REJECTED_REQUEST or any(
        marker in lowered for marker in _DENIED_MARKERS
    ):
        return TransactionDeniedError(details=details)

    if any(marker in lowered for marker in _OUT_OF_GAS_MARKERS):
        return ResourceLimitExceededError(
            f"Transaction exceeded the configured gas limit of {gas_limit}",
            gas_limit=gas_limit,
            details=details,
        )

    return UnclassifiedRemoteError(
        f"Remote call failed: {text}",
        cause=exc,
        function_name="vote",
        details=details,
    )


class VoteSubmitter:
    """Issue read calls and the vote transaction through one binding."""

    def __init__(
        self,
        bound: BoundContract | None = None,
        *,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        wait_for_receipt: bool = True,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        self._bound = bound
        self._gas_limit = gas_limit
        self._wait_for_receipt = wait_for_receipt
        self._receipt_timeout = receipt_timeout

    @property
    def bound(self) -> BoundContract | None:
        return self._bound

    @property
    def gas_limit(self) -> int:
        return self._gas_limit

    def bind(self, bound: BoundContract) -> None:
        self._bound = bound

    def unbind(self) -> None:
        self._bound = None

    def _require_bound(self) -> BoundContract:
        if self._bound is None:
            raise ContractUnavailableError()
        return self._bound

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def list_candidates(self) -> list[Candidate]:
        raw = await self._call("getAllCandidates")
        try:
            candidates = [Candidate.from_contract(entry) for entry in raw]
        except (TypeError, ValidationError) as exc:
            raise RemoteCallFailedError(
                "Contract returned an unexpected candidate list",
                cause=exc,
                function_name="getAllCandidates",
                details={"error": str(exc)},
            ) from exc
        return sorted(candidates, key=lambda candidate: candidate.id)

    async def voting_status(self, account: Address) -> bool:
        voter = normalise_address(account, field="account")
        return bool(await self._call("getVoterStatus", voter))

    async def total_votes(self) -> int:
        return int(await self._call("getTotalVotes"))

    async def candidates_count(self) -> int:
        return int(await self._call("candidatesCount"))

    async def _call(self, function_name: str, *args: Any) -> Any:
        bound = self._require_bound()
        contract_function = getattr(bound.contract.functions, function_name)(*args)
        try:
            return await contract_function.call()
        except Exception as exc:
            logger.warning("Call %s on %s failed: %s", function_name, bound.address, exc)
            raise RemoteCallFailedError(
                f"Call to {function_name} failed on {bound.address}",
                cause=exc,
                function_name=function_name,
                details={"address": bound.address, "error": str(exc)},
            ) from exc

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    async def cast_vote(self, candidate_id: int, account: Address | None) -> VoteReceipt:
        """Submit one ``vote`` transaction signed by ``account``.

        Not idempotent: every call sends a new transaction. Failures are
        raised as taxonomy errors and never retried.
        """
        bound = self._require_bound()
        if not account:
            raise NotConnectedError()
        if isinstance(candidate_id, bool) or not isinstance(candidate_id, int) or candidate_id <= 0:
            raise ValidationError(
                "Candidate id must be a positive integer",
                field="candidate_id",
                value=candidate_id,
            )
        voter = normalise_address(account, field="account")

        contract_function = bound.contract.functions.vote(candidate_id)
        logger.info("Casting vote for candidate %s from %s", candidate_id, voter)

        try:
            tx_hash = await contract_function.transact({"from": voter, "gas": self._gas_limit})
        except Exception as exc:
            error = classify_error(exc, gas_limit=self._gas_limit, account=voter)
            logger.warning("Vote submission failed: %s", error)
            raise error from exc

        tx_hex = HexBytes(tx_hash).to_0x_hex()
        logger.info("Vote transaction sent hash=%s", tx_hex)

        block_number = None
        if self._wait_for_receipt:
            try:
                receipt = await bound.web3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self._receipt_timeout
                )
            except Exception as exc:
                error = classify_error(exc, gas_limit=self._gas_limit, account=voter)
                logger.warning("Waiting for vote receipt failed: %s", error)
                raise error from exc

            await self._check_receipt(receipt, tx_hex, voter)
            block_number = receipt.get("blockNumber")
            logger.info("Vote confirmed hash=%s block=%s", tx_hex, block_number)

        return VoteReceipt(
            transaction_hash=tx_hex,
            candidate_id=candidate_id,
            voter=voter,
            block_number=block_number,
        )

    async def _check_receipt(self, receipt: Any, tx_hex: str, voter: Address) -> None:
        if receipt.get("status", 1) == 1:
            return

        gas_used = receipt.get("gasUsed")
        if gas_used is not None and gas_used >= self._gas_limit:
            raise ResourceLimitExceededError(
                f"Vote transaction ran out of gas at the configured limit of {self._gas_limit}",
                gas_limit=self._gas_limit,
                gas_used=gas_used,
                details={"tx_hash": tx_hex},
            )

        # Signed transactions revert on chain instead of failing at send time
        try:
            has_voted = await self.voting_status(voter)
        except RemoteCallFailedError as exc:
            logger.warning("Voter status check after revert %s failed: %s", tx_hex, exc)
            has_voted = False
        if has_voted:
            raise AlreadyVotedError(account=voter, details={"tx_hash": tx_hex})

        raise RemoteCallFailedError(
            "Vote transaction reverted",
            function_name="vote",
            details={"tx_hash": tx_hex, "gas_used": gas_used},
        )
