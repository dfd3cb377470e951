"""
Asset transfer history contracts.

Params select a block range, ordering, address filters and the transfer
categories to include. Requesting metadata uses a separate params type so that
only that path can produce results carrying an AssetTransfersMetadata.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union


DEFAULT_FROM_BLOCK = "0x0"
DEFAULT_MAX_COUNT = 1000


class AssetTransfersCategory(str, Enum):
    """Categories of transfers for get_asset_transfers."""

    # Top level ETH transactions from an externally owned address.
    EXTERNAL = "external"
    # Top level ETH transactions from a smart contract address.
    INTERNAL = "internal"
    ERC20 = "erc20"
    ERC721 = "erc721"
    ERC1155 = "erc1155"
    # Contracts that don't follow ERC 721/1155 (ex: CryptoKitties).
    SPECIALNFT = "specialnft"


# Categories that carry no token contract fields
NON_TOKEN_CATEGORIES = (AssetTransfersCategory.EXTERNAL, AssetTransfersCategory.INTERNAL)


class AssetTransfersOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class AssetTransfersParams:
    """
    Parameters for get_asset_transfers.

    from_block and to_block are inclusive. to_block defaults to the latest
    block. from_address/to_address default to all addresses. contract_addresses
    only applies to erc20, erc721 and erc1155 transfers.
    """

    category: Tuple[AssetTransfersCategory, ...]
    from_block: str = DEFAULT_FROM_BLOCK
    to_block: Optional[str] = None
    order: AssetTransfersOrder = AssetTransfersOrder.ASCENDING
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    contract_addresses: Optional[Tuple[str, ...]] = None
    # Zero value is not the same as a null value
    exclude_zero_value: bool = False
    max_count: int = DEFAULT_MAX_COUNT
    page_key: Optional[str] = None

    with_metadata: ClassVar[bool] = False

    def __post_init__(self):
        # Accept a single category or a list from callers but store tuples
        category = self.category
        if isinstance(category, str):
            category = (category,)
        object.__setattr__(self, "category", tuple(AssetTransfersCategory(c) for c in category))
        if self.contract_addresses is not None:
            object.__setattr__(self, "contract_addresses", tuple(self.contract_addresses))

        if not self.category:
            raise ValueError("category must contain at least one AssetTransfersCategory")
        if self.max_count <= 0:
            raise ValueError(f"max_count must be positive, got {self.max_count}")

    def with_page_key(self, page_key: str) -> "AssetTransfersParams":
        """Return a copy of these params continuing from page_key."""
        return replace(self, page_key=page_key)

    def to_params(self) -> Dict[str, Any]:
        """Build the alchemy_getAssetTransfers request object."""
        params: Dict[str, Any] = {
            "fromBlock": self.from_block,
            "toBlock": self.to_block or "latest",
            "order": self.order.value,
            "category": [c.value for c in self.category],
            "excludeZeroValue": self.exclude_zero_value,
            "maxCount": hex(self.max_count),
            "withMetadata": self.with_metadata,
        }
        if self.from_address:
            params["fromAddress"] = self.from_address
        if self.to_address:
            params["toAddress"] = self.to_address
        if self.contract_addresses:
            params["contractAddresses"] = list(self.contract_addresses)
        if self.page_key:
            params["pageKey"] = self.page_key
        return params


@dataclass(frozen=True)
class AssetTransfersWithMetadataParams(AssetTransfersParams):
    """Parameters for get_asset_transfers that include transfer metadata."""

    with_metadata: ClassVar[Literal[True]] = True


@dataclass(frozen=True)
class ERC1155Metadata:
    token_id: str
    value: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ERC1155Metadata":
        return cls(token_id=data.get("tokenId", ""), value=data.get("value", ""))


@dataclass(frozen=True)
class RawContract:
    """Information about the underlying contract of a transfer."""

    # Raw transfer value as hex. None for ERC721 and ERC1155 transfers.
    value: Optional[str]
    # None for internal and external transfers.
    address: Optional[str]
    # Contract decimals as hex. None if not available.
    decimal: Optional[str]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RawContract":
        return cls(
            value=data.get("value"),
            address=data.get("address"),
            decimal=data.get("decimal"),
        )


@dataclass(frozen=True)
class AssetTransfersResult:
    """A single transfer event."""

    category: AssetTransfersCategory
    block_num: str
    from_address: str
    to_address: Optional[str]
    # Raw value divided by contract decimals. None for ERC721 transfers or
    # when the contract decimals are unknown.
    value: Optional[float]
    erc721_token_id: Optional[str]
    erc1155_metadata: Optional[Tuple[ERC1155Metadata, ...]]
    token_id: Optional[str]
    # Token symbol, or ETH for non-token transfers
    asset: Optional[str]
    hash: str
    raw_contract: RawContract
    # Identifies the transfer within its transaction. Several transfers can
    # share a hash.
    unique_id: Optional[str] = None

    def __post_init__(self):
        if self.category == AssetTransfersCategory.ERC721:
            if self.erc721_token_id is None:
                raise ValueError(f"ERC721 transfer {self.hash} is missing erc721_token_id")
            if self.value is not None:
                raise ValueError(f"ERC721 transfer {self.hash} cannot carry a value")
        elif self.erc721_token_id is not None:
            raise ValueError(f"{self.category.value} transfer {self.hash} cannot carry erc721_token_id")

        if self.category == AssetTransfersCategory.ERC1155:
            if self.erc1155_metadata is None:
                raise ValueError(f"ERC1155 transfer {self.hash} is missing erc1155_metadata")
        elif self.erc1155_metadata is not None:
            raise ValueError(f"{self.category.value} transfer {self.hash} cannot carry erc1155_metadata")

        if self.raw_contract.decimal is None and self.category == AssetTransfersCategory.ERC20:
            if self.value is not None:
                raise ValueError(f"ERC20 transfer {self.hash} has a value without contract decimals")

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AssetTransfersResult":
        category = AssetTransfersCategory(data["category"])
        raw_contract = RawContract.from_json(data.get("rawContract") or {})
        erc721_token_id = data.get("erc721TokenId")
        erc1155_metadata = data.get("erc1155Metadata")
        token_id = data.get("tokenId")
        value = data.get("value")

        # Token fields are null for ETH transfers regardless of what the payload holds
        if category in NON_TOKEN_CATEGORIES:
            erc721_token_id = None
            erc1155_metadata = None
            token_id = None
            raw_contract = RawContract(value=raw_contract.value, address=None, decimal=None)
        if category != AssetTransfersCategory.ERC721:
            erc721_token_id = None
        else:
            value = None
        if category != AssetTransfersCategory.ERC1155:
            erc1155_metadata = None
        if category == AssetTransfersCategory.ERC20 and raw_contract.decimal is None:
            value = None

        return cls(
            category=category,
            block_num=data.get("blockNum", ""),
            from_address=data.get("from", ""),
            to_address=data.get("to"),
            value=value,
            erc721_token_id=erc721_token_id,
            erc1155_metadata=(
                tuple(ERC1155Metadata.from_json(m) for m in erc1155_metadata)
                if erc1155_metadata is not None
                else None
            ),
            token_id=token_id,
            asset=data.get("asset"),
            hash=data.get("hash", ""),
            raw_contract=raw_contract,
            unique_id=data.get("uniqueId"),
        )


@dataclass(frozen=True)
class AssetTransfersMetadata:
    # Timestamp of the block the transfer originated from
    block_timestamp: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AssetTransfersMetadata":
        if "blockTimestamp" not in data:
            raise ValueError("Transfer metadata is missing blockTimestamp")
        return cls(block_timestamp=data["blockTimestamp"])


@dataclass(frozen=True)
class AssetTransfersWithMetadataResult:
    """A transfer event returned when metadata was requested."""

    transfer: AssetTransfersResult
    metadata: AssetTransfersMetadata

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AssetTransfersWithMetadataResult":
        if data.get("metadata") is None:
            raise ValueError(f"Transfer {data.get('hash')} is missing metadata")
        return cls(
            transfer=AssetTransfersResult.from_json(data),
            metadata=AssetTransfersMetadata.from_json(data["metadata"]),
        )


@dataclass(frozen=True)
class AssetTransfersResponse:
    transfers: Tuple[AssetTransfersResult, ...]
    # Page key for the next page of results, if one exists
    page_key: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AssetTransfersResponse":
        return cls(
            transfers=tuple(AssetTransfersResult.from_json(t) for t in data.get("transfers", [])),
            page_key=data.get("pageKey") or None,
        )


@dataclass(frozen=True)
class AssetTransfersWithMetadataResponse:
    transfers: Tuple[AssetTransfersWithMetadataResult, ...]
    page_key: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AssetTransfersWithMetadataResponse":
        return cls(
            transfers=tuple(
                AssetTransfersWithMetadataResult.from_json(t) for t in data.get("transfers", [])
            ),
            page_key=data.get("pageKey") or None,
        )


AnyAssetTransfersResponse = Union[AssetTransfersResponse, AssetTransfersWithMetadataResponse]


def category_list(categories: List[str]) -> Tuple[AssetTransfersCategory, ...]:
    """
    Convert category names to AssetTransfersCategory values.

    Raises:
        ValueError: If a category is not recognized
    """
    result = []
    for name in categories:
        try:
            result.append(AssetTransfersCategory(name.lower()))
        except ValueError:
            supported = ", ".join(c.value for c in AssetTransfersCategory)
            raise ValueError(f"Unsupported category: {name}. Supported: {supported}") from None
    return tuple(result)
