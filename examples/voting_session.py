"""Example: Auto-detect the voting contract for the node's chain and show the tally."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from votechain import (
    RPCWalletProvider,
    SessionController,
    SessionState,
    UnsupportedNetworkError,
    VotingClientConfig,
    short_address,
    sort_by_votes,
    vote_percentage,
)

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("voting_session")


async def main() -> None:
    config = VotingClientConfig.from_env()
    provider = RPCWalletProvider(
        config.rpc_url,
        private_key=config.private_key,
        request_timeout=config.request_timeout,
    )
    watcher = asyncio.create_task(provider.watch())

    try:
        async with SessionController.from_config(config, provider) as session:
            try:
                await session.connect()
            except UnsupportedNetworkError as exc:
                if not config.contract_address:
                    raise
                logger.warning("%s; using configured contract address", exc)
            if config.contract_address and session.state is not SessionState.READY:
                await session.use_manual_address(config.contract_address)

            snapshot = await session.refresh()
            if snapshot is None:
                logger.warning("Session was reset while loading; nothing to show")
                return

            logger.info(
                "Connected as %s on %s",
                short_address(session.account or ""),
                session.network_name,
            )
            for candidate in sort_by_votes(snapshot.candidates):
                logger.info(
                    "%-20s %4d votes  %5.1f%%",
                    candidate.name,
                    candidate.vote_count,
                    vote_percentage(candidate.vote_count, snapshot.total_votes),
                )
            logger.info(
                "Total votes: %s, already voted: %s", snapshot.total_votes, snapshot.has_voted
            )
    finally:
        watcher.cancel()


if __name__ == "__main__":
    asyncio.run(main())
