"""Command line entry point for contract-deployer.

Usage:
  contract-deployer [run]
  contract-deployer deploy-registry --network mantle-testnet
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .bot import deploy_registry, run
from .config import Settings
from .constants import DEFAULT_REGISTRY_NETWORK, NETWORK_CONFIG
from .exceptions import ConfigurationError, DeploymentFailure

logger = logging.getLogger("contract_deployer")


def _parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="contract-deployer",
        description="Chat bot that deploys smart contracts and records them in a registry",
    )
    sub = p.add_subparsers(dest="command")
    sub.add_parser("run", help="Run the bot (default)")
    reg = sub.add_parser("deploy-registry", help="Deploy the bundled ContractRegistry")
    reg.add_argument(
        "--network",
        choices=sorted(NETWORK_CONFIG),
        default=DEFAULT_REGISTRY_NETWORK,
        help="Network to deploy the registry to",
    )
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    ns = _parse_args(list(sys.argv[1:] if argv is None else argv))
    load_dotenv()

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", e)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if ns.command == "deploy-registry":
        try:
            result = asyncio.run(deploy_registry(settings, ns.network))
        except ConfigurationError as e:
            logger.error("%s", e)
            return 1
        except DeploymentFailure as e:
            logger.error("Registry deployment failed (%s): %s", e.kind.value, e.message)
            return 1
        print(f"ContractRegistry deployed at {result.contract_address}")
        print(f"Transaction: {result.tx_hash}")
        print(f"Set CONTRACT_REGISTRY_ADDRESS={result.contract_address}")
        print(f"Set CONTRACT_REGISTRY_NETWORK={ns.network}")
        return 0

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
