"""Command line entry point: onchain-deploy."""

import argparse
import logging
import sys
from typing import List, Optional

from .constants import DEFAULT_PLAN_FILENAME
from .exceptions import ConfigurationError, DeploymentError
from .orchestrator import deploy

logger = logging.getLogger("onchain_deployments")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onchain-deploy",
        description="Deploy and wire interdependent contracts in dependency order.",
    )
    parser.add_argument(
        "--config", default=DEFAULT_PLAN_FILENAME,
        help=f"Deployment plan JSON (default: {DEFAULT_PLAN_FILENAME})",
    )
    parser.add_argument("--network", default="hardhat", help="Target network (default: hardhat)")
    parser.add_argument(
        "--tags", default=None,
        help="Comma-separated tags; only tagged units and their dependencies run",
    )
    parser.add_argument("--rpc-url", default=None, help="Override the network's RPC URL")
    parser.add_argument("--artifacts-dir", default=None, help="Compiler artifacts (default: ./artifacts)")
    parser.add_argument("--deployments-dir", default=None, help="Ledger directory (default: ./deployments)")
    parser.add_argument(
        "--force-wiring", action="store_true",
        help="Re-run wiring calls of units that are already deployed",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    tags = [t.strip() for t in args.tags.split(",") if t.strip()] if args.tags else None

    try:
        report = deploy(
            args.config,
            args.network,
            tags=tags,
            rpc_url=args.rpc_url,
            artifacts_dir=args.artifacts_dir,
            deployments_dir=args.deployments_dir,
            force_wiring=args.force_wiring,
        )
    except ConfigurationError as e:
        logger.error("configuration error: %s", e)
        return EXIT_CONFIG
    except DeploymentError as e:
        logger.error("%s", e)
        return EXIT_FAILED

    for name, address in report.addresses.items():
        print(f"{name}: {address}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
