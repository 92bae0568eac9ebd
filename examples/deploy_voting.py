"""Example: Deploy the Voting contract and write deployment.json."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from votechain import DeploymentConfig
from votechain.deployment import deploy_from_config

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("deploy_voting")


async def main() -> None:
    config = DeploymentConfig.from_env()
    logger.info("Deploying Voting to %s with candidates %s", config.rpc_url, config.candidates)

    record = await deploy_from_config(config)

    logger.info("Contract address: %s", record.address)
    logger.info("Transaction hash: %s", record.transaction_hash)
    logger.info("Record written to %s", config.record_path)


if __name__ == "__main__":
    asyncio.run(main())
