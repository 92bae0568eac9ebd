"""Inspect a deployed Voting contract and vote once from the configured account."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from .base import WalletProvider
from .config import DEFAULT_RECORD_PATH, VotingClientConfig
from .deployment import DeploymentRecord
from .exceptions import ContractUnavailableError, NotConnectedError
from .providers import RPCWalletProvider
from .session import SessionController
from .types import Candidate, VoteReceipt, VotingSnapshot
from .utils import vote_percentage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractionResult:
    """What an interaction run observed and did."""

    account: str
    before: VotingSnapshot
    receipt: VoteReceipt | None = None
    after: VotingSnapshot | None = None


def format_candidates(candidates: tuple[Candidate, ...], total_votes: int) -> list[str]:
    return [
        f"{candidate.id}: {candidate.name} - {candidate.vote_count} votes "
        f"({vote_percentage(candidate.vote_count, total_votes)}%)"
        for candidate in candidates
    ]


async def interact_with_contract(
    config: VotingClientConfig,
    *,
    record_path: str | Path = DEFAULT_RECORD_PATH,
    candidate_id: int = 1,
    provider: WalletProvider | None = None,
) -> InteractionResult:
    """Print the tally for the recorded deployment and vote if still allowed."""

    record = DeploymentRecord.load(record_path)
    logger.info("Interacting with contract at %s", record.address)

    provider = provider or RPCWalletProvider(
        config.rpc_url,
        private_key=config.private_key,
        request_timeout=config.request_timeout,
    )
    session_config = replace(config, auto_detect=False)

    async with SessionController.from_config(session_config, provider) as session:
        await session.connect()
        await session.use_manual_address(record.address)
        account = session.account
        if account is None:
            raise NotConnectedError()
        logger.info("Using account %s", account)

        before = await session.refresh()
        if before is None:
            raise ContractUnavailableError("Session was reset while loading voting data")
        for line in format_candidates(before.candidates, before.total_votes):
            logger.info(line)
        logger.info("Has %s voted? %s", account, before.has_voted)
        logger.info("Total votes cast: %s", before.total_votes)

        if before.has_voted:
            logger.info("Account has already voted")
            return InteractionResult(account=account, before=before)
        if not before.candidates:
            logger.info("Contract has no candidates to vote for")
            return InteractionResult(account=account, before=before)

        logger.info("Voting for candidate %s", candidate_id)
        receipt = await session.cast_vote(candidate_id)
        logger.info("Vote cast! Transaction hash: %s", receipt.transaction_hash)

        after = session.snapshot
        if after is not None:
            for line in format_candidates(after.candidates, after.total_votes):
                logger.info(line)
        return InteractionResult(account=account, before=before, receipt=receipt, after=after)
