#!/usr/bin/env python3
"""
Check native and token balances for a list of embedded wallets.

This script reads wallet addresses from a CSV export, probes each wallet's
native balance and catalog token balances on every configured EVM network,
and appends the results to CSV files as it goes. Each finished wallet is
removed from the input CSV, so an interrupted run can simply be restarted.
"""

import argparse
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from scripts.lib.balance_prober import BalanceProber
from scripts.lib.chains import SUPPORTED_CHAINS, get_chains
from scripts.lib.output_sink import OutputSink
from scripts.lib.pacing import PacingPolicy
from scripts.lib.poller import DEFAULT_TOKEN_LIMIT, WalletPoller
from scripts.lib.rpc_client import RpcClientPool
from scripts.lib.token_catalog import DEFAULT_CATALOG_URL, TokenCatalogClient
from scripts.lib.wallet_list import WalletListStore


DEFAULT_INPUT = "wallet-list.csv"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Check embedded wallet balances across EVM networks "
            "and append results to CSV files."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check every wallet in wallet-list.csv on all networks
  AUTH_TOKEN=... %(prog)s

  # Only Ethereum and Base, writing results to ./out
  %(prog)s --auth-token YOUR_TOKEN --chains ethereum base --output-dir out
        """,
    )

    parser.add_argument(
        "--input",
        default=DEFAULT_INPUT,
        help=f"Wallet list CSV, rewritten as wallets complete (default: {DEFAULT_INPUT})",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for balance and error files (default: current directory)",
    )
    parser.add_argument(
        "--auth-token",
        default=os.getenv("AUTH_TOKEN"),
        help="Bearer token for the token catalog service (default: $AUTH_TOKEN)",
    )
    parser.add_argument(
        "--catalog-url",
        default=DEFAULT_CATALOG_URL,
        help=f"Token catalog base URL (default: {DEFAULT_CATALOG_URL})",
    )
    parser.add_argument(
        "--chains",
        nargs="+",
        help=f"Networks to check. Supported: {', '.join(SUPPORTED_CHAINS)} (default: all)",
    )
    parser.add_argument(
        "--token-limit",
        type=int,
        default=DEFAULT_TOKEN_LIMIT,
        help=f"Catalog tokens to probe per chain (default: {DEFAULT_TOKEN_LIMIT})",
    )
    return parser


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    load_dotenv()
    parsed_args = build_parser().parse_args(args)

    try:
        chains = get_chains(parsed_args.chains)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not parsed_args.auth_token:
        print(
            "Warning: no catalog auth token (set AUTH_TOKEN or pass --auth-token); "
            "token lists will likely fail and only native balances will be checked",
            file=sys.stderr,
        )

    if parsed_args.token_limit < 0:
        print("Error: --token-limit must not be negative", file=sys.stderr)
        return 1

    sink = OutputSink(parsed_args.output_dir)
    pool = RpcClientPool()
    poller = WalletPoller(
        store=WalletListStore(parsed_args.input),
        chains=chains,
        prober=BalanceProber(pool, sink.errors),
        catalog=TokenCatalogClient(
            parsed_args.auth_token or "", sink.errors, base_url=parsed_args.catalog_url
        ),
        sink=sink,
        pacing=PacingPolicy(),
        token_limit=parsed_args.token_limit,
    )

    try:
        summary = poller.run()
    finally:
        pool.close()

    print(
        f"\nChecked {summary.wallets_processed}/{summary.wallets_found} wallets: "
        f"{summary.records_written} balances written, {summary.non_zero_records} non-zero, "
        f"{summary.errors_recorded} errors",
        file=sys.stderr,
    )
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
