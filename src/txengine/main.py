"""Paper dry-run entry point: submit one transaction through in-memory collaborators."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import structlog

from txengine.config import Settings, load_settings
from txengine.execution.engine import TransactionEngine
from txengine.execution.paper import (
    PaperTransactionBuilder,
    PaperTransactionSender,
    PaperTransactionSigner,
)
from txengine.models import TransactionOutcome, TransactionType
from txengine.monitoring.logger import setup_logging

logger = structlog.get_logger()

PAPER_PRIVATE_KEY = "paper-private-key"


def build_paper_engine(settings: Settings, wallet_address: str) -> TransactionEngine:
    """Engine wired to paper collaborators with ``wallet_address`` registered."""
    signer = PaperTransactionSigner()
    signer.register_wallet(wallet_address, PAPER_PRIVATE_KEY)
    return TransactionEngine.from_settings(
        settings, PaperTransactionBuilder(), signer, PaperTransactionSender()
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Transaction engine paper dry run")
    parser.add_argument(
        "--type",
        required=True,
        choices=[t.value for t in TransactionType],
        help="Transaction type to submit",
    )
    parser.add_argument(
        "--data",
        required=True,
        help="Payload as a JSON object; must include wallet_address",
    )
    parser.add_argument("--agent", default="paper-agent", help="Submitting agent id")
    parser.add_argument("--config", default="", help="YAML config file")
    return parser


async def main(args: argparse.Namespace) -> TransactionOutcome:
    """Configure logging from settings and run one paper transaction."""
    settings = load_settings(config_file=args.config) if args.config else load_settings()
    setup_logging(settings.log_level, settings.log_json)

    data = json.loads(args.data)
    if not isinstance(data, dict):
        raise ValueError("--data must be a JSON object")
    engine = build_paper_engine(settings, str(data.get("wallet_address", "")))
    try:
        outcome = await engine.submit(TransactionType(args.type), data, args.agent)
    finally:
        await engine.shutdown()
    logger.info("paper_run_complete", success=outcome.success, request_id=outcome.request_id)
    return outcome


if __name__ == "__main__":
    try:
        parsed_args = build_parser().parse_args()
        result = asyncio.run(main(parsed_args))
        print(json.dumps(result.to_dict(), default=str))
        sys.exit(0 if result.success else 1)
    except KeyboardInterrupt:
        print("\nShutdown requested. Exiting.")
        sys.exit(0)
