"""
NFT ownership and NFT contract contracts.

NFT queries vary along two axes. Owner-scoped queries return what a single
address holds, with a balance per NFT; contract-scoped queries list the NFTs of
a collection with no balance. Each scope has a full-metadata and a base
(identity only) variant, and the options type that is passed in pins which
response type comes back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple, Union


DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100
MAX_CONTRACT_ADDRESSES = 20


class NftTokenType(str, Enum):
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"
    UNKNOWN = "UNKNOWN"


class NftExcludeFilters(str, Enum):
    """Filters for NFT queries. Matching NFTs are excluded from the response."""

    # Exclude NFTs that have been classified as spam.
    SPAM = "SPAM"


def normalize_token_id(token_id: str) -> str:
    """
    Convert a token id to its decimal string form.

    The NFT API returns token ids as 0x-prefixed hex strings.

    Examples:
        normalize_token_id("0x0a") -> "10"
        normalize_token_id("10") -> "10"
    """
    if token_id.lower().startswith("0x"):
        return str(int(token_id, 16))
    return token_id


def _parse_token_type(value: Optional[str]) -> NftTokenType:
    try:
        return NftTokenType(value)
    except ValueError:
        return NftTokenType.UNKNOWN


@dataclass(frozen=True)
class NftMetadata:
    """
    NFT metadata. There is no standard metadata format, so none of the named
    fields are guaranteed to be present. The full payload is kept in raw.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    external_url: Optional[str] = None
    background_color: Optional[str] = None
    attributes: Tuple[Dict[str, Any], ...] = ()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_json(cls, data: Any) -> "NftMetadata":
        # Unparseable metadata comes back as a plain string
        if not isinstance(data, dict):
            return cls()
        attributes = data.get("attributes")
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            image=data.get("image"),
            external_url=data.get("external_url"),
            background_color=data.get("background_color"),
            attributes=tuple(attributes) if isinstance(attributes, list) else (),
            raw=dict(data),
        )


@dataclass(frozen=True)
class TokenUri:
    # Original metadata location (ex: the IPFS link)
    raw: str
    # Public gateway for the raw URI
    gateway: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TokenUri":
        return cls(raw=data.get("raw", ""), gateway=data.get("gateway", ""))


@dataclass(frozen=True)
class Media:
    raw: str
    gateway: str
    thumbnail: Optional[str] = None
    # jpg, gif, png, ...
    format: Optional[str] = None
    # Size in bytes
    size: Optional[int] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Media":
        return cls(
            raw=data.get("raw", ""),
            gateway=data.get("gateway", ""),
            thumbnail=data.get("thumbnail"),
            format=data.get("format"),
            size=data.get("bytes"),
        )


@dataclass(frozen=True)
class SpamInfo:
    """Whether and why an NFT contract was classified as spam."""

    is_spam: bool
    classifications: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SpamInfo":
        is_spam = data.get("isSpam", False)
        # The NFT API sends the flag as a string
        if isinstance(is_spam, str):
            is_spam = is_spam.lower() == "true"
        return cls(
            is_spam=bool(is_spam),
            classifications=tuple(data.get("classifications", [])),
        )


@dataclass(frozen=True)
class NftContract:
    address: str


@dataclass(frozen=True)
class BaseNft:
    """NFT identity without any fetched metadata."""

    contract: NftContract
    token_id: str
    token_type: NftTokenType

    @classmethod
    def from_json(cls, data: Dict[str, Any], contract_address: Optional[str] = None) -> "BaseNft":
        token = data.get("id", {})
        return cls(
            contract=NftContract(address=data.get("contract", {}).get("address", contract_address or "")),
            token_id=normalize_token_id(token.get("tokenId", "")),
            token_type=_parse_token_type(token.get("tokenMetadata", {}).get("tokenType")),
        )


@dataclass(frozen=True)
class Nft:
    """An NFT with its metadata. The metadata may be empty but is always present."""

    contract: NftContract
    token_id: str
    token_type: NftTokenType
    title: str
    description: str
    metadata: NftMetadata
    token_uri: Optional[TokenUri] = None
    media: Tuple[Media, ...] = ()
    time_last_updated: Optional[str] = None
    metadata_error: Optional[str] = None
    spam_info: Optional[SpamInfo] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any], contract_address: Optional[str] = None) -> "Nft":
        base = BaseNft.from_json(data, contract_address)
        description = data.get("description", "")
        # Some collections send a list of description strings
        if isinstance(description, list):
            description = " ".join(description)
        token_uri = data.get("tokenUri")
        spam_info = data.get("spamInfo")
        return cls(
            contract=base.contract,
            token_id=base.token_id,
            token_type=base.token_type,
            title=data.get("title", ""),
            description=description,
            metadata=NftMetadata.from_json(data.get("metadata") or {}),
            token_uri=TokenUri.from_json(token_uri) if token_uri else None,
            media=tuple(Media.from_json(m) for m in data.get("media", [])),
            time_last_updated=data.get("timeLastUpdated"),
            metadata_error=data.get("error"),
            spam_info=SpamInfo.from_json(spam_info) if spam_info else None,
        )


def _parse_balance(data: Dict[str, Any]) -> int:
    return int(data.get("balance", "1"))


@dataclass(frozen=True)
class OwnedNft:
    """An NFT with metadata held by an address, with the quantity held."""

    nft: Nft
    balance: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OwnedNft":
        return cls(nft=Nft.from_json(data), balance=_parse_balance(data))


@dataclass(frozen=True)
class OwnedBaseNft:
    """An NFT without metadata held by an address, with the quantity held."""

    nft: BaseNft
    balance: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OwnedBaseNft":
        return cls(nft=BaseNft.from_json(data), balance=_parse_balance(data))


def _validate_page_size(page_size: int) -> None:
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")


def _validate_timeout(timeout_ms: Optional[int]) -> None:
    if timeout_ms is not None and timeout_ms < 0:
        raise ValueError(f"token_uri_timeout_in_ms must be >= 0, got {timeout_ms}")


@dataclass(frozen=True)
class _OwnerOptions:
    page_key: Optional[str] = None
    # Limit is 20
    contract_addresses: Optional[Tuple[str, ...]] = None
    exclude_filters: Tuple[NftExcludeFilters, ...] = ()
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.contract_addresses is not None:
            object.__setattr__(self, "contract_addresses", tuple(self.contract_addresses))
            if len(self.contract_addresses) > MAX_CONTRACT_ADDRESSES:
                raise ValueError(
                    f"contract_addresses accepts at most {MAX_CONTRACT_ADDRESSES} entries, "
                    f"got {len(self.contract_addresses)}"
                )
        object.__setattr__(
            self, "exclude_filters", tuple(NftExcludeFilters(f) for f in self.exclude_filters)
        )
        _validate_page_size(self.page_size)

    def to_params(self, owner: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "owner": owner,
            "pageSize": self.page_size,
            "withMetadata": "false" if self.omit_metadata else "true",
        }
        if self.page_key:
            params["pageKey"] = self.page_key
        if self.contract_addresses:
            params["contractAddresses[]"] = list(self.contract_addresses)
        if self.exclude_filters:
            params["filters[]"] = [f.value for f in self.exclude_filters]
        return params


@dataclass(frozen=True)
class GetNftsForOwnerOptions(_OwnerOptions):
    """
    Options for fetching the NFTs of an owner together with their metadata.

    To fetch NFTs without metadata, use GetBaseNftsForOwnerOptions.
    """

    omit_metadata: Literal[False] = False
    # Timeout for the website hosting the metadata to respond. None waits
    # indefinitely, 0 only reads the cache and never live fetches.
    token_uri_timeout_in_ms: Optional[int] = None

    def __post_init__(self):
        super().__post_init__()
        if self.omit_metadata is not False:
            raise ValueError("Use GetBaseNftsForOwnerOptions to omit NFT metadata")
        _validate_timeout(self.token_uri_timeout_in_ms)

    def to_params(self, owner: str) -> Dict[str, Any]:
        params = super().to_params(owner)
        if self.token_uri_timeout_in_ms is not None:
            params["tokenUriTimeoutInMs"] = self.token_uri_timeout_in_ms
        return params


@dataclass(frozen=True)
class GetBaseNftsForOwnerOptions(_OwnerOptions):
    """Options for fetching the NFTs of an owner without their metadata."""

    omit_metadata: Literal[True] = True

    def __post_init__(self):
        super().__post_init__()
        if self.omit_metadata is not True:
            raise ValueError("Use GetNftsForOwnerOptions to include NFT metadata")


@dataclass(frozen=True)
class GetNftsForContractOptions:
    """
    Options for fetching the NFTs of a contract together with their metadata.

    To fetch NFTs without metadata, use GetBaseNftsForContractOptions.
    """

    page_key: Optional[str] = None
    omit_metadata: Literal[False] = False
    page_size: int = DEFAULT_PAGE_SIZE
    token_uri_timeout_in_ms: Optional[int] = None

    def __post_init__(self):
        if self.omit_metadata is not False:
            raise ValueError("Use GetBaseNftsForContractOptions to omit NFT metadata")
        _validate_page_size(self.page_size)
        _validate_timeout(self.token_uri_timeout_in_ms)

    def to_params(self, contract_address: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "contractAddress": contract_address,
            "withMetadata": "true",
            "limit": self.page_size,
        }
        # The collection endpoint paginates with startToken/nextToken
        if self.page_key:
            params["startToken"] = self.page_key
        if self.token_uri_timeout_in_ms is not None:
            params["tokenUriTimeoutInMs"] = self.token_uri_timeout_in_ms
        return params


@dataclass(frozen=True)
class GetBaseNftsForContractOptions:
    """Options for fetching the NFTs of a contract without their metadata."""

    page_key: Optional[str] = None
    omit_metadata: Literal[True] = True
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.omit_metadata is not True:
            raise ValueError("Use GetNftsForContractOptions to include NFT metadata")
        _validate_page_size(self.page_size)

    def to_params(self, contract_address: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "contractAddress": contract_address,
            "withMetadata": "false",
            "limit": self.page_size,
        }
        if self.page_key:
            params["startToken"] = self.page_key
        return params


@dataclass(frozen=True)
class OwnedNftsResponse:
    """
    NFTs with metadata held by an address. If there is no page_key, there are
    no more NFTs to fetch.
    """

    owned_nfts: Tuple[OwnedNft, ...]
    page_key: Optional[str] = None
    total_count: Optional[int] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OwnedNftsResponse":
        return cls(
            owned_nfts=tuple(OwnedNft.from_json(n) for n in data.get("ownedNfts", [])),
            page_key=data.get("pageKey") or None,
            total_count=data.get("totalCount"),
        )


@dataclass(frozen=True)
class OwnedBaseNftsResponse:
    owned_nfts: Tuple[OwnedBaseNft, ...]
    page_key: Optional[str] = None
    total_count: Optional[int] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OwnedBaseNftsResponse":
        return cls(
            owned_nfts=tuple(OwnedBaseNft.from_json(n) for n in data.get("ownedNfts", [])),
            page_key=data.get("pageKey") or None,
            total_count=data.get("totalCount"),
        )


@dataclass(frozen=True)
class NftContractNftsResponse:
    nfts: Tuple[Nft, ...]
    page_key: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any], contract_address: str) -> "NftContractNftsResponse":
        return cls(
            nfts=tuple(Nft.from_json(n, contract_address) for n in data.get("nfts", [])),
            page_key=data.get("nextToken") or None,
        )


@dataclass(frozen=True)
class NftContractBaseNftsResponse:
    nfts: Tuple[BaseNft, ...]
    page_key: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any], contract_address: str) -> "NftContractBaseNftsResponse":
        return cls(
            nfts=tuple(BaseNft.from_json(n, contract_address) for n in data.get("nfts", [])),
            page_key=data.get("nextToken") or None,
        )


@dataclass(frozen=True)
class GetOwnersForNftResponse:
    owners: Tuple[str, ...]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "GetOwnersForNftResponse":
        return cls(owners=tuple(data.get("owners", [])))


@dataclass(frozen=True)
class GetOwnersForContractResponse:
    owners: Tuple[str, ...]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "GetOwnersForContractResponse":
        return cls(owners=tuple(data.get("ownerAddresses", [])))


OwnerOptions = Union[GetNftsForOwnerOptions, GetBaseNftsForOwnerOptions]
ContractOptions = Union[GetNftsForContractOptions, GetBaseNftsForContractOptions]
