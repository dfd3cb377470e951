"""
Token balance and token metadata contracts.

A balance query is either a request for an explicit list of contracts, the
default token set, or an ERC-20 sweep that can be continued with a page key.
Each returned balance is a success/failure union: a single response can carry
failed lookups next to successful ones.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class TokenBalanceType(str, Enum):
    """Token types for the get_token_balances endpoint."""

    # Top 100 tokens by 24-hour volume. Mainnet Ethereum, Polygon and Arbitrum only.
    DEFAULT_TOKENS = "DEFAULT_TOKENS"

    # Every ERC-20 token the address has ever received.
    ERC20 = "erc20"


@dataclass(frozen=True)
class TokenBalancesOptionsErc20:
    """Fetch all ERC-20 tokens the address has held, one page at a time."""

    page_key: Optional[str] = None
    type: TokenBalanceType = field(default=TokenBalanceType.ERC20, init=False)

    def to_params(self) -> List[Any]:
        params: List[Any] = [self.type.value]
        if self.page_key:
            params.append({"pageKey": self.page_key})
        return params


@dataclass(frozen=True)
class TokenBalancesOptionsDefaultTokens:
    """Fetch balances for the default (top 100) token set."""

    type: TokenBalanceType = field(default=TokenBalanceType.DEFAULT_TOKENS, init=False)

    def to_params(self) -> List[Any]:
        return [self.type.value]


TokenBalancesOptions = Union[TokenBalancesOptionsErc20, TokenBalancesOptionsDefaultTokens]


@dataclass(frozen=True)
class TokenBalanceSuccess:
    """A token balance that was fetched successfully."""

    contract_address: str
    token_balance: str  # Hex string

    @property
    def error(self) -> None:
        return None


@dataclass(frozen=True)
class TokenBalanceFailure:
    """A token balance that could not be fetched."""

    contract_address: str
    error: str

    @property
    def token_balance(self) -> None:
        return None


TokenBalance = Union[TokenBalanceSuccess, TokenBalanceFailure]


def parse_token_balance(data: Dict[str, Any]) -> TokenBalance:
    """
    Select the success or failure arm for a raw token balance entry.

    Args:
        data: A single entry of the "tokenBalances" array

    Returns:
        TokenBalanceFailure when "error" is set, TokenBalanceSuccess otherwise

    Raises:
        ValueError: If neither a balance nor an error is present
    """
    contract_address = data.get("contractAddress", "")
    error = data.get("error")
    if error is not None:
        return TokenBalanceFailure(contract_address=contract_address, error=str(error))

    token_balance = data.get("tokenBalance")
    if token_balance is None:
        raise ValueError(
            f"Token balance for {contract_address} has neither a balance nor an error"
        )
    return TokenBalanceSuccess(contract_address=contract_address, token_balance=token_balance)


@dataclass(frozen=True)
class TokenBalancesResponse:
    address: str
    token_balances: Tuple[TokenBalance, ...]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TokenBalancesResponse":
        return cls(
            address=data.get("address", ""),
            token_balances=tuple(parse_token_balance(tb) for tb in data.get("tokenBalances", [])),
        )


@dataclass(frozen=True)
class TokenBalancesResponseErc20:
    """
    Response for an ERC-20 sweep.

    A missing page_key means there are no more balances to fetch.
    """

    address: str
    token_balances: Tuple[TokenBalance, ...]
    page_key: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TokenBalancesResponseErc20":
        return cls(
            address=data.get("address", ""),
            token_balances=tuple(parse_token_balance(tb) for tb in data.get("tokenBalances", [])),
            page_key=data.get("pageKey") or None,
        )


@dataclass(frozen=True)
class TokenMetadataResponse:
    """
    Token metadata. Each field is None when it is not defined in the contract
    and not available from other sources.
    """

    name: Optional[str]
    symbol: Optional[str]
    decimals: Optional[int]
    logo: Optional[str]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TokenMetadataResponse":
        return cls(
            name=data.get("name"),
            symbol=data.get("symbol"),
            decimals=data.get("decimals"),
            logo=data.get("logo"),
        )
