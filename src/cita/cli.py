"""
Command-line interface for the CITA client.

Provides commands for querying nodes and sending transactions.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

import structlog

from cita import __version__
from cita.config import ClientConfig, set_config
from cita.errors import CitaClientError
from cita.rpc.dispatcher import RequestDispatcher
from cita.rpc.types import RpcMethod
from cita.tx.builder import TransactionBuilder
from cita.tx.signer import TransactionSigner, generate_test_key


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so stdout stays machine-readable
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cita-client",
        description="JSON-RPC client for CITA chains",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--node",
        action="append",
        dest="nodes",
        metavar="URL",
        help="Node JSON-RPC URL; repeat to broadcast to several nodes "
             "(default: CITA_NODES or http://127.0.0.1:1337)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-node request timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("block-number", help="Show the latest block height of every node")

    metadata_parser = subparsers.add_parser("metadata", help="Show chain metadata")
    metadata_parser.add_argument(
        "--height",
        default="latest",
        help="Block height or 'latest' (default: latest)",
    )

    send_parser = subparsers.add_parser("send-tx", help="Build, sign and submit a transaction")
    send_parser.add_argument(
        "--code",
        required=True,
        help="Call data or contract code in hex",
    )
    send_parser.add_argument(
        "--to",
        default="",
        help="Destination address (omit to create a contract)",
    )
    send_parser.add_argument(
        "--private-key",
        help="Hex private key (default: CITA_PRIVATE_KEY)",
    )
    send_parser.add_argument(
        "--quota",
        type=int,
        help="Quota for the transaction (default: 1000000)",
    )
    send_parser.add_argument(
        "--chain-id",
        type=int,
        help="Chain id (default: resolved from the first node)",
    )
    send_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the signed transaction without submitting it",
    )

    subparsers.add_parser("gen-key", help="Generate a throwaway key pair")

    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Overlay command-line options on the environment configuration."""
    overrides: dict = {
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    if args.nodes:
        overrides["nodes"] = args.nodes
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    return ClientConfig(**overrides)


def _emit(value: Any) -> None:
    print(json.dumps(value, indent=2, default=str))


def _height_arg(raw: str) -> Any:
    if raw == "latest":
        return raw
    return int(raw, 16) if raw.startswith("0x") else int(raw)


async def show_block_number(dispatcher: RequestDispatcher) -> None:
    """Print every node's latest block height."""
    responses = await dispatcher.send(RpcMethod.BLOCK_NUMBER)
    _emit({
        endpoint: response.to_dict()
        for endpoint, response in zip(dispatcher.endpoints, responses)
    })


async def show_metadata(dispatcher: RequestDispatcher, height: str) -> None:
    """Print chain metadata from the first node."""
    _emit(await dispatcher.get_metadata(_height_arg(height)))


async def send_transaction(
    dispatcher: RequestDispatcher,
    config: ClientConfig,
    args: argparse.Namespace,
) -> None:
    """Build, sign and (unless dry-run) submit a transaction."""
    private_key: Optional[str] = args.private_key or config.private_key
    if not private_key:
        raise ValueError("No private key given (use --private-key or CITA_PRIVATE_KEY)")

    signer = TransactionSigner(private_key, config=config)
    builder = TransactionBuilder(dispatcher, config)

    height = await dispatcher.get_block_number()
    signed_tx = await builder.build_and_sign(
        args.code,
        args.to,
        signer,
        current_height=height,
        chain_id=args.chain_id,
        quota=args.quota,
    )

    if args.dry_run:
        _emit({"from": signer.address, "signed_transaction": signed_tx})
        return

    responses = await dispatcher.send_raw_transaction(signed_tx)
    _emit({
        endpoint: response.to_dict()
        for endpoint, response in zip(dispatcher.endpoints, responses)
    })


async def run_command(args: argparse.Namespace, config: ClientConfig) -> None:
    """Dispatch a node command."""
    async with RequestDispatcher(config) as dispatcher:
        if args.command == "block-number":
            await show_block_number(dispatcher)
        elif args.command == "metadata":
            await show_metadata(dispatcher, args.height)
        elif args.command == "send-tx":
            await send_transaction(dispatcher, config, args)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_json)

    if args.command == "gen-key":
        signer = generate_test_key()
        _emit({"private_key": signer.export_key(), "address": signer.address})
        return

    try:
        config = build_config(args)
        set_config(config)
        asyncio.run(run_command(args, config))
    except (CitaClientError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
