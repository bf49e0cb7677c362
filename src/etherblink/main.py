#!/usr/bin/env python3
"""EtherBlink - shareable blockchain action links.

Entry point for the EtherBlink service and CLI.
"""

import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from eth_account import Account

from etherblink.blockchain.networks import NetworkInfo
from etherblink.cli import create_parser, run_cli
from etherblink.config import EtherBlinkConfig, LinkStrategy
from etherblink.links.codec import create_codec
from etherblink.links.store import LocalActionStore, StoreHealthCheck
from etherblink.observability.health import HealthEndpoints
from etherblink.observability.logging import configure_logging
from etherblink.web.app import EtherBlinkServer


def generate_wallet(output_path: str) -> str:
    """Create a fresh account and write its key to ``output_path``.

    The file is created with mode 0600 and never overwritten, so an
    existing funded key cannot be lost by running this twice.

    Returns
    -------
    str
        The new account's address.

    Raises
    ------
    FileExistsError
        If ``output_path`` already exists.
    """
    account = Account.create()
    key_path = Path(output_path).expanduser()
    key_path.parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    try:
        with os.fdopen(fd, "w") as key_file:
            key_file.write("0x" + bytes(account.key).hex())
    except OSError:
        key_path.unlink(missing_ok=True)
        raise

    print(f"""
Wallet generated successfully!

  Address:     {account.address}
  Private Key: {key_path.absolute()}

Fund this address with native currency before executing links, then run:

  export ETHERBLINK_WALLET_PRIVATE_KEY_FILE={key_path.absolute()}
  etherblink execute <link>

Keep this file private. Anyone who can read it controls the wallet.
""")
    return account.address


def parse_args():
    return create_parser().parse_args()


def build_server(config: EtherBlinkConfig) -> EtherBlinkServer:
    """Assemble the web service for ``config``.

    The store strategy gets a ``LocalActionStore`` and a readiness check
    on it. The inline strategy needs no backend.
    """
    health = HealthEndpoints()
    store = None
    if config.link_strategy == LinkStrategy.STORE:
        store = LocalActionStore(redis_url=config.redis_url)
        health.add_check(StoreHealthCheck(store))

    return EtherBlinkServer(
        codec=create_codec(config.link_strategy, store),
        network=NetworkInfo.from_config(config),
        base_url=config.base_url,
        health=health,
        host=config.host,
        port=config.port,
    )


async def run_service() -> None:
    """Serve links until SIGTERM or SIGINT."""
    config = EtherBlinkConfig()
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    logger.info(
        "EtherBlink starting",
        extra={
            "base_url": config.base_url,
            "link_strategy": config.link_strategy.value,
            "chain_id": config.chain_id,
            "currency": config.currency_symbol,
        },
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    server = build_server(config)
    await server.start()
    logger.info("EtherBlink ready", extra={"host": config.host, "port": config.port})

    await stop.wait()

    logger.info("EtherBlink shutting down")
    await server.stop()


async def main() -> None:
    args = parse_args()

    if args.generate_wallet:
        try:
            generate_wallet(args.generate_wallet)
        except FileExistsError:
            print(f"Refusing to overwrite {args.generate_wallet}", file=sys.stderr)
            sys.exit(1)
        return

    if args.command and args.command != "run":
        exit_code = await run_cli(args)
        if exit_code < 0:
            create_parser().print_help()
            exit_code = 0
        sys.exit(exit_code)

    await run_service()


def entrypoint() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    entrypoint()
