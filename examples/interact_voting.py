"""Example: Read the tally of the deployed contract and vote for candidate 1."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from votechain import VotingClientConfig, VotingError
from votechain.interact import interact_with_contract

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("interact_voting")


async def main() -> None:
    config = VotingClientConfig.from_env()
    record_path = os.getenv("VOTING_DEPLOYMENT_RECORD", "deployment.json")
    candidate_id = int(os.getenv("VOTING_CANDIDATE_ID", "1"))

    try:
        result = await interact_with_contract(
            config, record_path=record_path, candidate_id=candidate_id
        )
    except VotingError as exc:
        logger.error("Interaction failed: %s", exc)
        raise

    if result.receipt is not None:
        logger.info("Voted in transaction %s", result.receipt.transaction_hash)
    else:
        logger.info("No vote submitted")


if __name__ == "__main__":
    asyncio.run(main())
