#!/usr/bin/env python3
"""
Export a wallet's asset transfers, ERC-20 balances, or NFTs to CSV.

This script queries the Alchemy API on one or more networks and writes a CSV
report. NFTs classified as spam are written to a separate file.
"""

import argparse
import sys
from typing import List, Optional, Tuple

from alchemy_contracts.lib.alchemy_client import AlchemyAPIError, AlchemyClient
from alchemy_contracts.lib.formatters import (
    BALANCE_COLUMNS,
    NFT_COLUMNS,
    TRANSFER_COLUMNS,
    Row,
    is_spam,
    owned_nft_to_row,
    token_balance_to_row,
    transfer_to_row,
    write_csv,
)
from alchemy_contracts.lib.nfts import GetNftsForOwnerOptions
from alchemy_contracts.lib.settings import Network, parse_network
from alchemy_contracts.lib.transfers import (
    AssetTransfersCategory,
    AssetTransfersWithMetadataParams,
    category_list,
)


REPORTS = ["transfers", "balances", "nfts"]

DEFAULT_CATEGORIES = [
    AssetTransfersCategory.EXTERNAL.value,
    AssetTransfersCategory.ERC20.value,
    AssetTransfersCategory.ERC721.value,
    AssetTransfersCategory.ERC1155.value,
]


def log(network: str, message: str) -> None:
    """Log a message with network prefix."""
    print(f"[{network}] {message}", file=sys.stderr)


def collect_transfers(
    client: AlchemyClient, wallet: str, categories: List[str]
) -> Tuple[List[Row], List[Row]]:
    """
    Collect incoming and outgoing transfers of a wallet, ordered by block.

    Internal transfers are only indexed on some networks, so they are not
    requested by default.
    """
    network = client.network.value
    category = category_list(categories)
    transfers = []
    for params in (
        AssetTransfersWithMetadataParams(category=category, from_address=wallet),
        AssetTransfersWithMetadataParams(category=category, to_address=wallet),
    ):
        transfers.extend(client.iter_asset_transfers(params))

    # A self-transfer shows up in both directions. A transaction can hold
    # several transfers, so fall back to the whole record without a uniqueId.
    unique = {}
    for t in transfers:
        unique[t.transfer.unique_id or t.transfer] = t
    ordered = sorted(unique.values(), key=lambda t: int(t.transfer.block_num, 16))

    log(network, f"Found {len(ordered)} transfers")
    return [transfer_to_row(network, t) for t in ordered], []


def collect_balances(client: AlchemyClient, wallet: str) -> Tuple[List[Row], List[Row]]:
    """Collect every ERC-20 balance of a wallet with token metadata."""
    network = client.network.value
    rows: List[Row] = []
    failed = 0
    skipped_tokens = 0

    for balance in client.iter_token_balances(wallet):
        if balance.error is not None:
            failed += 1
            rows.append(token_balance_to_row(network, balance))
            continue

        # Skip zero balances
        if int(balance.token_balance, 16) == 0:
            continue

        try:
            metadata = client.get_token_metadata(balance.contract_address)
        except AlchemyAPIError:
            skipped_tokens += 1
            continue
        rows.append(token_balance_to_row(network, balance, metadata))

    log(network, f"Found {len(rows) - failed} ERC-20 tokens")
    if failed > 0:
        log(network, f"{failed} balance(s) could not be fetched")
    if skipped_tokens > 0:
        log(network, f"Skipped {skipped_tokens} token(s) due to metadata fetch failures")
    return rows, []


def collect_nfts(client: AlchemyClient, wallet: str) -> Tuple[List[Row], List[Row]]:
    """Collect the NFTs of a wallet, separating spam."""
    network = client.network.value
    rows: List[Row] = []
    spam_rows: List[Row] = []

    for owned in client.iter_nfts_for_owner(wallet, GetNftsForOwnerOptions()):
        if is_spam(owned):
            spam_rows.append(owned_nft_to_row(network, owned))
        else:
            rows.append(owned_nft_to_row(network, owned))

    log(network, f"Found {len(rows)} NFTs")
    if spam_rows:
        log(network, f"{len(spam_rows)} NFTs marked as spam")
    return rows, spam_rows


def scan_network(
    client: AlchemyClient, report: str, wallet: str, categories: List[str]
) -> Optional[Tuple[List[Row], List[Row]]]:
    """
    Run a report on a single network.

    Returns:
        Tuple of (rows, spam_rows), or None if the network failed
    """
    network = client.network.value
    log(network, f"Starting {report} export...")

    try:
        if report == "transfers":
            return collect_transfers(client, wallet, categories)
        if report == "balances":
            return collect_balances(client, wallet)
        return collect_nfts(client, wallet)
    except AlchemyAPIError as e:
        log(network, f"ERROR: {e}. Skipping network.")
        return None


def validate_networks(networks: List[str]) -> List[Network]:
    """
    Validate and normalize network names.

    Args:
        networks: List of network slugs (e.g. eth-mainnet) or enum names

    Returns:
        Validated list of Network values

    Raises:
        ValueError: If any network is not supported
    """
    return [parse_network(network) for network in networks]


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        description="Export wallet activity from the Alchemy API to CSV.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export Ethereum transfers to stdout
  %(prog)s --api-key YOUR_KEY --wallet 0x... --networks eth-mainnet

  # Export NFTs on Ethereum and Polygon to a file
  %(prog)s --api-key YOUR_KEY --wallet 0x... --report nfts \\
    --networks eth-mainnet polygon-mainnet --output nfts.csv
        """,
    )

    parser.add_argument(
        "--api-key",
        required=True,
        help="Alchemy API key",
    )
    parser.add_argument(
        "--wallet",
        required=True,
        help="Wallet address to query",
    )
    parser.add_argument(
        "--networks",
        nargs="+",
        default=[Network.ETH_MAINNET.value],
        help=f"Networks to query. Supported: {', '.join(n.value for n in Network)}",
    )
    parser.add_argument(
        "--report",
        choices=REPORTS,
        default="transfers",
        help="Report to export (default: transfers)",
    )
    parser.add_argument(
        "--category",
        nargs="+",
        default=DEFAULT_CATEGORIES,
        help=(
            "Transfer categories for the transfers report. "
            f"Supported: {', '.join(c.value for c in AssetTransfersCategory)}"
        ),
    )
    parser.add_argument(
        "--output",
        help="Output file path (timestamp auto-appended). If not specified, outputs to stdout.",
    )

    parsed_args = parser.parse_args(args)

    try:
        networks = validate_networks(parsed_args.networks)
        category_list(parsed_args.category)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    columns = {
        "transfers": TRANSFER_COLUMNS,
        "balances": BALANCE_COLUMNS,
        "nfts": NFT_COLUMNS,
    }[parsed_args.report]

    all_rows: List[Row] = []
    all_spam_rows: List[Row] = []
    for network in networks:
        # The network is fixed per client
        client = AlchemyClient(parsed_args.api_key, network=network)
        result = scan_network(client, parsed_args.report, parsed_args.wallet, parsed_args.category)
        if result is not None:
            rows, spam_rows = result
            all_rows.extend(rows)
            all_spam_rows.extend(spam_rows)

    main_file, spam_file = write_csv(columns, all_rows, all_spam_rows, parsed_args.output)

    if main_file:
        print(f"\nResults written to: {main_file}", file=sys.stderr)
        if spam_file:
            print(f"Spam assets written to: {spam_file}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
