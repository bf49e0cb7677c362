"""CLI subcommands for EtherBlink.

Provides command-line interface for:
- Link creation (tip, nft)
- Link resolution (show what a link does)
- Action execution from a locally held wallet
- Wallet operations (address, balance)
"""

import argparse
import json
import sys
from decimal import Decimal

from etherblink.blockchain.client import ChainClient
from etherblink.blockchain.networks import NetworkInfo
from etherblink.config import EtherBlinkConfig, LinkStrategy
from etherblink.core.errors import (
    INVALID_LINK_MESSAGE,
    ActionValidationError,
    LinkResolutionError,
    MalformedLinkError,
    StoreWriteError,
)
from etherblink.core.executor import ActionExecutor, ExecutionState, plan_transaction
from etherblink.core.models import parse_action, validate_action
from etherblink.core.presenter import present
from etherblink.core.session import WalletSession
from etherblink.core.wallet import LocalKeyWallet
from etherblink.links.codec import LinkCodec, build_link_url, create_codec, extract_token
from etherblink.links.store import RemoteActionStore

STATUS_MESSAGES = {
    ExecutionState.AWAITING_WALLET_CONFIRMATION: "Waiting for wallet confirmation...",
    ExecutionState.AWAITING_CHAIN_CONFIRMATION: "Confirming transaction...",
    ExecutionState.CONFIRMED: "Success! Action complete.",
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="etherblink",
        description="EtherBlink - shareable blockchain action links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the transaction an execute would submit without sending it",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Generate a new wallet and save private key to FILE, then exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Create subcommand
    create_parser_ = subparsers.add_parser("create", help="Create an action link")
    create_sub = create_parser_.add_subparsers(dest="create_command")

    tip_parser = create_sub.add_parser("tip", help="Link that sends a tip")
    tip_parser.add_argument("address", type=str, help="Recipient address")
    tip_parser.add_argument("amount", type=str, help="Tip amount in native units")
    tip_parser.add_argument("--description", type=str, default=None, help="Custom description")

    nft_parser = create_sub.add_parser("nft", help="Link that buys an NFT")
    nft_parser.add_argument("contract", type=str, help="NFT sale contract address")
    nft_parser.add_argument("token_id", type=str, help="Token ID")
    nft_parser.add_argument("price", type=str, help="Price in native units")
    nft_parser.add_argument("--description", type=str, default=None, help="Custom description")

    # Resolve / execute
    resolve_parser = subparsers.add_parser("resolve", help="Show what an action link does")
    resolve_parser.add_argument("link", type=str, help="Action link or token")

    execute_parser = subparsers.add_parser("execute", help="Execute an action link")
    execute_parser.add_argument("link", type=str, help="Action link or token")

    # Wallet subcommand
    wallet_parser = subparsers.add_parser("wallet", help="Wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")

    wallet_sub.add_parser("address", help="Show wallet address")
    wallet_sub.add_parser("balance", help="Show wallet balance")

    # Run subcommand (start service)
    subparsers.add_parser("run", help="Start the EtherBlink web service")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(
        self, config: EtherBlinkConfig, dry_run: bool = False, json_output: bool = False
    ):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._wallet: LocalKeyWallet | None = None
        self._client: ChainClient | None = None
        self._codec: LinkCodec | None = None
        self._network: NetworkInfo | None = None

    @property
    def wallet(self) -> LocalKeyWallet:
        """Get wallet (lazy loaded)."""
        if self._wallet is None:
            self._wallet = LocalKeyWallet.from_config(self.config)
        return self._wallet

    @property
    def client(self) -> ChainClient:
        """Get chain client for the wallet (lazy loaded)."""
        if self._client is None:
            self._client = ChainClient(self.config.rpc_endpoint, self.wallet)
        return self._client

    @property
    def network(self) -> NetworkInfo:
        if self._network is None:
            self._network = NetworkInfo.from_config(self.config)
        return self._network

    @property
    def codec(self) -> LinkCodec:
        """Get link codec (lazy loaded); store links go through the service API."""
        if self._codec is None:
            store = None
            if self.config.link_strategy == LinkStrategy.STORE:
                store = RemoteActionStore(self.config.base_url)
            self._codec = create_codec(self.config.link_strategy, store)
        return self._codec

    def connect_wallet(self) -> WalletSession:
        """Open a wallet session for one execution."""
        return WalletSession(
            network=self.network,
            client=self.client,
            receipt_timeout=self.config.receipt_timeout,
        )

    async def close(self) -> None:
        if self._codec is not None:
            await self._codec.close()
            self._codec = None

    def report_transition(self, state: ExecutionState, executor: ActionExecutor) -> None:
        """Print executor progress in text mode."""
        if self.json_output:
            return
        if state == ExecutionState.FAILED:
            print(f"Status: Error: {executor.error_message}")
        else:
            print(f"Status: {STATUS_MESSAGES[state]}")

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:

            def decimal_default(obj):
                if isinstance(obj, Decimal):
                    return str(obj)
                raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

            print(json.dumps(data, default=decimal_default, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print data in human-readable format."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            else:
                print(f"{prefix}{key}: {value}")


# Link commands


async def cmd_create(ctx: CLIContext, fields: dict) -> int:
    """Create an action link."""
    try:
        action = parse_action(fields)
        validate_action(action)
    except (ActionValidationError, MalformedLinkError) as e:
        ctx.output({"error": str(e)})
        return 1

    try:
        token = await ctx.codec.encode(action)
    except StoreWriteError as e:
        ctx.output({"error": f"Failed to generate link: {e}"})
        return 1

    metadata = present(action, ctx.network.currency_symbol)
    ctx.output(
        {
            "link": build_link_url(ctx.config.base_url, token),
            "token": token,
            "title": metadata.title,
            "description": metadata.description,
        }
    )
    return 0


async def cmd_resolve(ctx: CLIContext, link: str) -> int:
    """Show the action behind a link."""
    try:
        action = await ctx.codec.resolve(extract_token(link))
    except LinkResolutionError:
        ctx.output({"error": INVALID_LINK_MESSAGE})
        return 1

    metadata = present(action, ctx.network.currency_symbol)
    ctx.output(
        {
            "action": action.model_dump(exclude_none=True),
            "metadata": metadata.to_dict(),
        }
    )
    return 0


async def cmd_execute(ctx: CLIContext, link: str) -> int:
    """Resolve a link and execute it from the configured wallet."""
    try:
        action = await ctx.codec.resolve(extract_token(link))
    except LinkResolutionError:
        ctx.output({"error": INVALID_LINK_MESSAGE})
        return 1

    metadata = present(action, ctx.network.currency_symbol)

    if ctx.dry_run:
        try:
            plan = plan_transaction(action)
        except ActionValidationError as e:
            ctx.output({"error": str(e)})
            return 1
        ctx.output(
            {
                "dry_run": True,
                "title": metadata.title,
                "description": metadata.description,
                "transaction": plan.to_dict(),
            }
        )
        return 0

    try:
        session = ctx.connect_wallet()
    except (ValueError, FileNotFoundError) as e:
        ctx.output({"error": str(e)})
        return 1

    if not session.client.connected:
        ctx.output({"error": "Not connected to RPC endpoint"})
        return 1

    if not ctx.json_output:
        print(metadata.title)
        print(metadata.description)

    executor = ActionExecutor(action, session, on_transition=ctx.report_transition)
    state = await executor.execute()

    result = {
        "action_type": action.action_type,
        "state": state.value,
        "tx_hash": executor.tx_hash,
    }
    if state == ExecutionState.CONFIRMED:
        if executor.tx_url:
            result["tx_url"] = executor.tx_url
        ctx.output(result)
        return 0

    result["error"] = executor.error_message
    ctx.output(result)
    return 1


# Wallet commands


def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show wallet address."""
    try:
        ctx.output({"address": ctx.wallet.address})
        return 0
    except (ValueError, FileNotFoundError) as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_wallet_balance(ctx: CLIContext) -> int:
    """Show wallet balance."""
    try:
        if not ctx.client.connected:
            ctx.output({"error": "Not connected to RPC endpoint"})
            return 1

        ctx.output(
            {
                "address": ctx.wallet.address,
                "balance": ctx.client.get_balance(ctx.wallet.address),
                "currency": ctx.config.currency_symbol,
                "rpc": ctx.config.rpc_endpoint,
                "chain_id": ctx.client.chain_id,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


async def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    try:
        config = EtherBlinkConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)
    try:
        return await _dispatch(ctx, args)
    finally:
        await ctx.close()


async def _dispatch(ctx: CLIContext, args: argparse.Namespace) -> int:
    if args.command == "create":
        if args.create_command == "tip":
            return await cmd_create(
                ctx,
                {
                    "action_type": "tip",
                    "recipient_address": args.address,
                    "tip_amount_eth": args.amount,
                    "description": args.description,
                },
            )
        elif args.create_command == "nft":
            return await cmd_create(
                ctx,
                {
                    "action_type": "nft_sale",
                    "contract_address": args.contract,
                    "token_id": args.token_id,
                    "price": args.price,
                    "description": args.description,
                },
            )
        else:
            print("Usage: etherblink create [tip|nft]", file=sys.stderr)
            return 1

    elif args.command == "resolve":
        return await cmd_resolve(ctx, args.link)

    elif args.command == "execute":
        return await cmd_execute(ctx, args.link)

    elif args.command == "wallet":
        if args.wallet_command == "address":
            return cmd_wallet_address(ctx)
        elif args.wallet_command == "balance":
            return cmd_wallet_balance(ctx)
        else:
            print("Usage: etherblink wallet [address|balance]", file=sys.stderr)
            return 1

    else:
        return -1
