"""
Output formatters for wallet activity reports.

This module renders contract records (transfers, token balances, owned NFTs)
as CSV rows, and handles timestamp-based filenames and spam separation.
"""

import csv
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple, Union

from .balances import TokenBalance, TokenMetadataResponse
from .nfts import OwnedNft
from .transfers import AssetTransfersResult, AssetTransfersWithMetadataResult


# CSV column order for each report
TRANSFER_COLUMNS = [
    "network",
    "block_num",
    "hash",
    "category",
    "from",
    "to",
    "asset",
    "value",
    "token_id",
    "contract_address",
    "block_timestamp",
]

BALANCE_COLUMNS = [
    "network",
    "contract_address",
    "name",
    "symbol",
    "quantity",
    "error",
]

NFT_COLUMNS = [
    "network",
    "contract_address",
    "token_id",
    "token_type",
    "title",
    "balance",
]

Row = List[str]


def format_quantity(raw_balance: int, decimals: int) -> str:
    """
    Format balance with full precision, trimming trailing zeros.

    Args:
        raw_balance: Raw balance value (in smallest unit)
        decimals: Number of decimal places

    Returns:
        Formatted balance string with trailing zeros trimmed

    Examples:
        format_quantity(1000000, 6) -> "1"
        format_quantity(1500000, 6) -> "1.5"
        format_quantity(1234567890123456789, 18) -> "1.234567890123456789"
    """
    if raw_balance == 0:
        return "0"

    if decimals == 0:
        return str(raw_balance)

    # Use Decimal for precise arithmetic
    balance = Decimal(raw_balance) / Decimal(10**decimals)
    formatted = format(balance, "f")

    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")

    return formatted


def _hex_quantity(value: str) -> str:
    if value.lower().startswith("0x"):
        return str(int(value, 16))
    return value


def transfer_to_row(
    network: str,
    transfer: Union[AssetTransfersResult, AssetTransfersWithMetadataResult],
) -> Row:
    """
    Convert a transfer (with or without metadata) to a CSV row.

    An ERC1155 transfer can move several tokens. Its token ids and quantities
    are joined with ";" in the same order.
    """
    block_timestamp = ""
    if isinstance(transfer, AssetTransfersWithMetadataResult):
        block_timestamp = transfer.metadata.block_timestamp
        transfer = transfer.transfer

    if transfer.erc1155_metadata is not None:
        value = ";".join(_hex_quantity(m.value) for m in transfer.erc1155_metadata)
        token_id = ";".join(m.token_id for m in transfer.erc1155_metadata)
    else:
        value = "" if transfer.value is None else format(Decimal(str(transfer.value)), "f")
        token_id = transfer.erc721_token_id or transfer.token_id or ""

    return [
        network,
        transfer.block_num,
        transfer.hash,
        transfer.category.value,
        transfer.from_address,
        transfer.to_address or "",
        transfer.asset or "",
        value,
        token_id,
        transfer.raw_contract.address or "",
        block_timestamp,
    ]


def token_balance_to_row(
    network: str,
    balance: TokenBalance,
    metadata: Optional[TokenMetadataResponse] = None,
) -> Row:
    """
    Convert a token balance to a CSV row.

    Failed balances keep their error and leave the quantity empty. Without
    metadata the raw balance is shown assuming 18 decimals.
    """
    name = metadata.name if metadata and metadata.name else ""
    symbol = metadata.symbol if metadata and metadata.symbol else ""

    if balance.error is not None:
        return [network, balance.contract_address, name, symbol, "", balance.error]

    decimals = metadata.decimals if metadata and metadata.decimals is not None else 18
    quantity = format_quantity(int(balance.token_balance, 16), decimals)
    return [network, balance.contract_address, name, symbol, quantity, ""]


def owned_nft_to_row(network: str, owned: OwnedNft) -> Row:
    nft = owned.nft
    return [
        network,
        nft.contract.address,
        nft.token_id,
        nft.token_type.value,
        nft.title or nft.metadata.name or "",
        str(owned.balance),
    ]


def is_spam(owned: OwnedNft) -> bool:
    return owned.nft.spam_info is not None and owned.nft.spam_info.is_spam


def generate_timestamp() -> str:
    """
    Generate a timestamp string for filenames.

    Returns:
        Timestamp in YYYYMMDD_HHMMSS format
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def generate_filenames(base_path: str, timestamp: Optional[str] = None) -> Tuple[str, str]:
    """
    Generate timestamped filenames for main and spam CSV files.

    Args:
        base_path: Base output path (e.g., "wallet_report.csv")
        timestamp: Optional timestamp to use (generates new one if not provided)

    Returns:
        Tuple of (main_file_path, spam_file_path)

    Examples:
        generate_filenames("wallet_report.csv", "20241214_153022")
        -> ("wallet_report_20241214_153022.csv", "wallet_report_20241214_153022_spam.csv")
    """
    if timestamp is None:
        timestamp = generate_timestamp()

    path = Path(base_path)
    stem = path.stem
    suffix = path.suffix or ".csv"
    parent = path.parent

    main_file = parent / f"{stem}_{timestamp}{suffix}"
    spam_file = parent / f"{stem}_{timestamp}_spam{suffix}"

    return str(main_file), str(spam_file)


def write_csv_to_stream(columns: Sequence[str], rows: Sequence[Row], stream: TextIO) -> None:
    """
    Write rows to a CSV stream under a header row.

    Args:
        columns: Header row
        rows: Rows to write
        stream: File-like object to write to
    """
    writer = csv.writer(stream)
    writer.writerow(columns)

    for row in rows:
        writer.writerow(row)


def write_csv(
    columns: Sequence[str],
    rows: Sequence[Row],
    spam_rows: Sequence[Row] = (),
    output_path: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Write rows to CSV files or stdout.

    Args:
        columns: Header row
        rows: Main (non-spam) rows
        spam_rows: Spam rows, written to a separate file
        output_path: Base output path. If None, writes main rows to stdout.

    Returns:
        Tuple of (main_file_path, spam_file_path) if output_path provided,
        otherwise (None, None).
    """
    if output_path is None:
        write_csv_to_stream(columns, rows, sys.stdout)
        return None, None

    main_file, spam_file = generate_filenames(output_path, generate_timestamp())

    with open(main_file, "w", newline="", encoding="utf-8") as f:
        write_csv_to_stream(columns, rows, f)

    # Spam file only when there is spam
    if spam_rows:
        with open(spam_file, "w", newline="", encoding="utf-8") as f:
            write_csv_to_stream(columns, spam_rows, f)
        return main_file, spam_file

    return main_file, None
