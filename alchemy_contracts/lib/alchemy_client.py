"""
Alchemy API client with automatic rate limit handling and retry logic.

This module provides a centralized client for the Alchemy JSON-RPC and NFT
APIs. Every method takes and returns the request/response contracts defined in
the sibling modules, validating request parameters before any network call.
"""

import random
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Union, overload

import requests

from .balances import (
    TokenBalance,
    TokenBalancesOptionsDefaultTokens,
    TokenBalancesOptionsErc20,
    TokenBalancesResponse,
    TokenBalancesResponseErc20,
    TokenMetadataResponse,
)
from .marketplace import (
    GetFloorPriceResponse,
    RefreshContractResult,
    RefreshState,
    can_transition,
)
from .nfts import (
    BaseNft,
    GetBaseNftsForContractOptions,
    GetBaseNftsForOwnerOptions,
    GetNftsForContractOptions,
    GetNftsForOwnerOptions,
    GetOwnersForContractResponse,
    GetOwnersForNftResponse,
    Nft,
    NftContractBaseNftsResponse,
    NftContractNftsResponse,
    OwnedBaseNft,
    OwnedBaseNftsResponse,
    OwnedNft,
    OwnedNftsResponse,
)
from .settings import DEFAULT_API_KEY, DEFAULT_MAX_RETRIES, AlchemySettings, Network
from .transactions import (
    DeployResult,
    SendPrivateTransactionOptions,
    TransactionReceiptsBlockHash,
    TransactionReceiptsBlockNumber,
    TransactionReceiptsParams,
    TransactionReceiptsResponse,
)
from .transfers import (
    AnyAssetTransfersResponse,
    AssetTransfersParams,
    AssetTransfersResponse,
    AssetTransfersResult,
    AssetTransfersWithMetadataParams,
    AssetTransfersWithMetadataResponse,
    AssetTransfersWithMetadataResult,
)


# Retry configuration
DEFAULT_INITIAL_DELAY = 1.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_DELAY = 32.0  # seconds
DEFAULT_JITTER = 0.1  # ±10%

# Contract refresh polling
DEFAULT_REFRESH_POLL_INTERVAL = 5.0  # seconds
DEFAULT_REFRESH_MAX_POLLS = 60


class AlchemyAPIError(Exception):
    """Exception raised for Alchemy API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AlchemyRateLimitError(AlchemyAPIError):
    """Exception raised when rate limit is exceeded and retries are exhausted."""

    pass


class AlchemyClient:
    """
    Centralized Alchemy API client with automatic 429 retry handling.

    All API interactions go through this class, which handles:
    - Network-specific endpoint URLs
    - HTTP 429 rate limit retries with exponential backoff
    - Conversion between wire JSON and the contract types
    - Pagination for multi-page endpoints
    """

    def __init__(
        self,
        api_key: str = DEFAULT_API_KEY,
        network: Network = Network.ETH_MAINNET,
        url: Optional[str] = None,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_delay: float = DEFAULT_MAX_DELAY,
        jitter: float = DEFAULT_JITTER,
    ):
        """
        Initialize the Alchemy client.

        Args:
            api_key: Alchemy API key
            network: Network for every request made by this client
            url: Optional endpoint overriding the one derived from network/api_key
            initial_delay: Initial delay in seconds for retry backoff
            backoff_multiplier: Multiplier for exponential backoff
            max_retries: Maximum number of retry attempts
            max_delay: Maximum delay cap in seconds
            jitter: Jitter factor (±percentage) to randomize delays
        """
        self.settings = AlchemySettings(
            api_key=api_key, network=network, max_retries=max_retries, url=url
        )
        self.api_key = api_key
        self.network = network
        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_retries = max_retries
        self.max_delay = max_delay
        self.jitter = jitter
        self.session = requests.Session()

    @classmethod
    def from_settings(cls, settings: AlchemySettings, **kwargs: Any) -> "AlchemyClient":
        """Build a client from an AlchemySettings object."""
        return cls(
            api_key=settings.api_key,
            network=settings.network,
            url=settings.url,
            max_retries=settings.max_retries,
            **kwargs,
        )

    def _sanitize_error_message(self, message: str) -> str:
        """Remove API key from error messages to prevent credential leakage."""
        if not self.api_key:
            return message
        return message.replace(self.api_key, "[REDACTED]")

    def _get_base_url(self) -> str:
        return self.settings.get_base_url()

    def _get_nft_api_url(self) -> str:
        return self.settings.get_nft_api_url()

    def _apply_jitter(self, delay: float) -> float:
        """Apply random jitter to a delay value."""
        jitter_range = delay * self.jitter
        return delay + random.uniform(-jitter_range, jitter_range)

    def _execute_with_retry(
        self,
        request_func: Callable[[], requests.Response],
    ) -> requests.Response:
        """
        Execute a request function with retry logic for rate limits and server errors.

        Args:
            request_func: A callable that returns a requests.Response

        Returns:
            The successful response

        Raises:
            AlchemyAPIError: For API errors after retries exhausted
            AlchemyRateLimitError: When rate limit retries are exhausted
        """
        delay = self.initial_delay

        for attempt in range(self.max_retries + 1):
            try:
                response = request_func()
            except requests.RequestException as e:
                if attempt < self.max_retries:
                    time.sleep(self._apply_jitter(min(delay, self.max_delay)))
                    delay *= self.backoff_multiplier
                    continue
                sanitized_msg = self._sanitize_error_message(str(e))
                raise AlchemyAPIError(f"Request failed: {sanitized_msg}") from e

            if response.status_code == 429:
                if attempt < self.max_retries:
                    time.sleep(self._apply_jitter(min(delay, self.max_delay)))
                    delay *= self.backoff_multiplier
                    continue
                raise AlchemyRateLimitError(
                    "Rate limit exceeded and max retries reached",
                    status_code=429,
                )

            if response.status_code == 401:
                raise AlchemyAPIError("Invalid API key", status_code=401)

            if response.status_code >= 500:
                if attempt < self.max_retries:
                    time.sleep(self._apply_jitter(min(delay, self.max_delay)))
                    delay *= self.backoff_multiplier
                    continue
                raise AlchemyAPIError(
                    f"Server error: {response.status_code}",
                    status_code=response.status_code,
                )

            if response.status_code >= 400:
                raise AlchemyAPIError(
                    self._sanitize_error_message(
                        f"Client error {response.status_code}: {response.text}"
                    ),
                    status_code=response.status_code,
                )

            return response

        raise AlchemyAPIError("Max retries exceeded")

    def _request(
        self,
        method: str,
        params: Any,
        request_id: int = 1,
    ) -> Any:
        """
        Make a JSON-RPC request with automatic 429 retry and exponential backoff.

        Args:
            method: JSON-RPC method name
            params: Method parameters
            request_id: JSON-RPC request ID

        Returns:
            The 'result' field from the JSON-RPC response

        Raises:
            AlchemyAPIError: For API errors
            AlchemyRateLimitError: When rate limit retries are exhausted
        """
        url = self._get_base_url()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": request_id,
        }

        response = self._execute_with_retry(lambda: self.session.post(url, json=payload))
        data = response.json()

        if "error" in data:
            error = data["error"]
            raise AlchemyAPIError(
                f"API error: {error.get('message', str(error))}",
                status_code=error.get("code"),
            )

        return data.get("result", {})

    def _request_nft_api(
        self,
        endpoint: str,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Make a REST request to the NFT API with automatic retry.

        Args:
            endpoint: API endpoint path (e.g., "getNFTs")
            params: Query parameters

        Returns:
            The JSON response
        """
        url = f"{self._get_nft_api_url()}/{endpoint}"

        response = self._execute_with_retry(lambda: self.session.get(url, params=params))
        return response.json()

    # Balances and token metadata

    @overload
    def get_token_balances(
        self, address: str, contract_addresses_or_options: Sequence[str]
    ) -> TokenBalancesResponse: ...

    @overload
    def get_token_balances(
        self, address: str, contract_addresses_or_options: Optional[TokenBalancesOptionsErc20] = None
    ) -> TokenBalancesResponseErc20: ...

    @overload
    def get_token_balances(
        self, address: str, contract_addresses_or_options: TokenBalancesOptionsDefaultTokens
    ) -> TokenBalancesResponse: ...

    def get_token_balances(self, address, contract_addresses_or_options=None):
        """
        Get token balances for an address.

        Args:
            address: Wallet address
            contract_addresses_or_options: A list of token contract addresses,
                TokenBalancesOptionsDefaultTokens, or TokenBalancesOptionsErc20.
                Defaults to an ERC-20 sweep.

        Returns:
            TokenBalancesResponseErc20 for ERC-20 sweeps (may carry a page_key),
            TokenBalancesResponse otherwise. Individual balances may be failures.
        """
        options = contract_addresses_or_options
        if options is None:
            options = TokenBalancesOptionsErc20()

        if isinstance(options, (list, tuple)):
            if not options:
                raise ValueError("contract_addresses must not be empty")
            result = self._request("alchemy_getTokenBalances", [address, list(options)])
            response = TokenBalancesResponse.from_json(result)
        elif isinstance(options, TokenBalancesOptionsErc20):
            result = self._request("alchemy_getTokenBalances", [address] + options.to_params())
            response = TokenBalancesResponseErc20.from_json(result)
        else:
            result = self._request("alchemy_getTokenBalances", [address] + options.to_params())
            response = TokenBalancesResponse.from_json(result)

        if response.address.lower() != address.lower():
            raise AlchemyAPIError(
                f"Token balances returned for {response.address}, expected {address}"
            )
        return response

    def iter_token_balances(self, address: str) -> Iterator[TokenBalance]:
        """
        Iterate over every ERC-20 balance of an address.

        Automatically paginates through all results. A contract address is
        yielded at most once.
        """
        seen = set()
        page_key: Optional[str] = None

        while True:
            response = self.get_token_balances(address, TokenBalancesOptionsErc20(page_key=page_key))
            for balance in response.token_balances:
                key = balance.contract_address.lower()
                if key in seen:
                    continue
                seen.add(key)
                yield balance

            page_key = response.page_key
            if not page_key:
                break

    def get_token_metadata(self, contract: str) -> TokenMetadataResponse:
        """
        Get metadata (name, symbol, decimals, logo) for a token contract.

        Args:
            contract: Token contract address

        Returns:
            TokenMetadataResponse object
        """
        result = self._request("alchemy_getTokenMetadata", [contract])
        return TokenMetadataResponse.from_json(result)

    # Asset transfers

    @overload
    def get_asset_transfers(
        self, params: AssetTransfersWithMetadataParams
    ) -> AssetTransfersWithMetadataResponse: ...

    @overload
    def get_asset_transfers(self, params: AssetTransfersParams) -> AssetTransfersResponse: ...

    def get_asset_transfers(self, params):
        """
        Get one page of asset transfers.

        Only AssetTransfersWithMetadataParams return results with metadata.
        """
        result = self._request("alchemy_getAssetTransfers", [params.to_params()])
        if isinstance(params, AssetTransfersWithMetadataParams):
            return AssetTransfersWithMetadataResponse.from_json(result)
        return AssetTransfersResponse.from_json(result)

    def iter_asset_transfers(
        self, params: AssetTransfersParams
    ) -> Iterator[Union[AssetTransfersResult, AssetTransfersWithMetadataResult]]:
        """Iterate over asset transfers, following page keys until exhausted."""
        while True:
            response: AnyAssetTransfersResponse = self.get_asset_transfers(params)
            yield from response.transfers
            if not response.page_key:
                break
            params = params.with_page_key(response.page_key)

    # NFTs

    @overload
    def get_nfts_for_owner(
        self, owner: str, options: GetBaseNftsForOwnerOptions
    ) -> OwnedBaseNftsResponse: ...

    @overload
    def get_nfts_for_owner(
        self, owner: str, options: Optional[GetNftsForOwnerOptions] = None
    ) -> OwnedNftsResponse: ...

    def get_nfts_for_owner(self, owner, options=None):
        """
        Get one page of NFTs owned by an address.

        Args:
            owner: Owner address
            options: GetNftsForOwnerOptions (with metadata, the default) or
                GetBaseNftsForOwnerOptions (without metadata)

        Returns:
            OwnedNftsResponse or OwnedBaseNftsResponse matching the options type
        """
        if options is None:
            options = GetNftsForOwnerOptions()

        result = self._request_nft_api("getNFTs", options.to_params(owner))
        if isinstance(options, GetBaseNftsForOwnerOptions):
            return OwnedBaseNftsResponse.from_json(result)
        return OwnedNftsResponse.from_json(result)

    def iter_nfts_for_owner(
        self,
        owner: str,
        options: Optional[Union[GetNftsForOwnerOptions, GetBaseNftsForOwnerOptions]] = None,
    ) -> Iterator[Union[OwnedNft, OwnedBaseNft]]:
        """Iterate over every NFT owned by an address across all pages."""
        if options is None:
            options = GetNftsForOwnerOptions()

        while True:
            response = self.get_nfts_for_owner(owner, options)
            yield from response.owned_nfts
            if not response.page_key:
                break
            options = replace(options, page_key=response.page_key)

    @overload
    def get_nfts_for_contract(
        self, contract_address: str, options: GetBaseNftsForContractOptions
    ) -> NftContractBaseNftsResponse: ...

    @overload
    def get_nfts_for_contract(
        self, contract_address: str, options: Optional[GetNftsForContractOptions] = None
    ) -> NftContractNftsResponse: ...

    def get_nfts_for_contract(self, contract_address, options=None):
        """
        Get one page of the NFTs of a contract.

        Contract-scoped results carry no balance.
        """
        if options is None:
            options = GetNftsForContractOptions()

        result = self._request_nft_api("getNFTsForCollection", options.to_params(contract_address))
        if isinstance(options, GetBaseNftsForContractOptions):
            return NftContractBaseNftsResponse.from_json(result, contract_address)
        return NftContractNftsResponse.from_json(result, contract_address)

    def iter_nfts_for_contract(
        self,
        contract_address: str,
        options: Optional[Union[GetNftsForContractOptions, GetBaseNftsForContractOptions]] = None,
    ) -> Iterator[Union[Nft, BaseNft]]:
        """Iterate over every NFT of a contract across all pages."""
        if options is None:
            options = GetNftsForContractOptions()

        while True:
            response = self.get_nfts_for_contract(contract_address, options)
            yield from response.nfts
            if not response.page_key:
                break
            options = replace(options, page_key=response.page_key)

    def get_owners_for_nft(self, contract_address: str, token_id: str) -> GetOwnersForNftResponse:
        result = self._request_nft_api(
            "getOwnersForToken", {"contractAddress": contract_address, "tokenId": token_id}
        )
        return GetOwnersForNftResponse.from_json(result)

    def get_owners_for_contract(self, contract_address: str) -> GetOwnersForContractResponse:
        result = self._request_nft_api(
            "getOwnersForCollection", {"contractAddress": contract_address}
        )
        return GetOwnersForContractResponse.from_json(result)

    # Marketplace and refresh

    def get_floor_price(self, contract_address: str) -> GetFloorPriceResponse:
        """
        Get the floor price of a collection on every supported marketplace.

        Each marketplace either has a price or a FloorPriceError.
        """
        result = self._request_nft_api("getFloorPrice", {"contractAddress": contract_address})
        return GetFloorPriceResponse.from_json(result)

    def refresh_contract(self, contract_address: str) -> RefreshContractResult:
        """Queue a contract for a metadata refresh and report its state."""
        result = self._request_nft_api("reingestContract", {"contractAddress": contract_address})
        return RefreshContractResult.from_json(result)

    def wait_for_refresh(
        self,
        contract_address: str,
        poll_interval: float = DEFAULT_REFRESH_POLL_INTERVAL,
        max_polls: int = DEFAULT_REFRESH_MAX_POLLS,
    ) -> RefreshContractResult:
        """
        Request a contract refresh and poll until it reaches a terminal state.

        Args:
            contract_address: NFT contract address
            poll_interval: Seconds between polls
            max_polls: Maximum number of refresh requests to make

        Returns:
            The terminal RefreshContractResult (finished, does_not_exist or
            queue_failed)

        Raises:
            AlchemyAPIError: On a state change the refresh lifecycle does not
                allow, or when max_polls is reached first
        """
        previous: Optional[RefreshState] = None

        for poll in range(max_polls):
            result = self.refresh_contract(contract_address)
            if not can_transition(previous, result.refresh_state):
                raise AlchemyAPIError(
                    f"Unexpected refresh state {result.refresh_state.value} after "
                    f"{previous.value if previous else 'request'} for {contract_address}"
                )
            if result.refresh_state.is_terminal:
                return result

            previous = result.refresh_state
            if poll < max_polls - 1:
                time.sleep(poll_interval)

        raise AlchemyAPIError(
            f"Refresh of {contract_address} still {previous.value if previous else 'pending'} "
            f"after {max_polls} polls"
        )

    # Transactions

    def get_transaction_receipts(
        self, params: TransactionReceiptsParams
    ) -> TransactionReceiptsResponse:
        """
        Get every transaction receipt of a block.

        Returns:
            TransactionReceiptsResponse whose receipts is None if the block was
            not found
        """
        if not isinstance(params, (TransactionReceiptsBlockNumber, TransactionReceiptsBlockHash)):
            raise ValueError(
                "params must be TransactionReceiptsBlockNumber or TransactionReceiptsBlockHash"
            )
        result = self._request("alchemy_getTransactionReceipts", [params.to_params()])
        return TransactionReceiptsResponse.from_json(result)

    def get_block_number(self) -> int:
        return int(self._request("eth_blockNumber", []), 16)

    def get_code(self, address: str, block_number: int) -> str:
        return self._request("eth_getCode", [address, hex(block_number)])

    def find_contract_deployer(self, contract_address: str) -> DeployResult:
        """
        Find the block a contract was deployed in and the address that deployed it.

        Binary searches for the first block with code at the address, then
        looks for the creating receipt in that block.

        Raises:
            ValueError: If no contract is deployed at the address
        """
        current_block = self.get_block_number()
        if _is_empty_code(self.get_code(contract_address, current_block)):
            raise ValueError(f"No contract deployed at {contract_address}")

        low, high = 0, current_block
        while low < high:
            mid = (low + high) // 2
            if _is_empty_code(self.get_code(contract_address, mid)):
                low = mid + 1
            else:
                high = mid

        response = self.get_transaction_receipts(TransactionReceiptsBlockNumber(hex(low)))
        deployer = None
        for receipt in response.receipts or ():
            if (
                receipt.contract_address is not None
                and receipt.contract_address.lower() == contract_address.lower()
            ):
                deployer = receipt.from_address
                break

        return DeployResult(block_number=low, deployer_address=deployer)

    def send_private_transaction(
        self,
        signed_transaction: str,
        max_block_number: Optional[int] = None,
        options: Optional[SendPrivateTransactionOptions] = None,
    ) -> str:
        """
        Send a signed transaction privately, bypassing the public mempool.

        Args:
            signed_transaction: Raw signed transaction hex
            max_block_number: Last block the transaction may be included in
            options: SendPrivateTransactionOptions (fast mode)

        Returns:
            The transaction hash
        """
        if options is None:
            options = SendPrivateTransactionOptions()

        request: Dict[str, Any] = {
            "tx": signed_transaction,
            "preferences": {"fast": options.fast},
        }
        if max_block_number is not None:
            request["maxBlockNumber"] = hex(max_block_number)
        return self._request("eth_sendPrivateTransaction", [request])

    def cancel_private_transaction(self, transaction_hash: str) -> bool:
        """Stop sending a private transaction. Fast mode transactions cannot be cancelled."""
        return bool(self._request("eth_cancelPrivateTransaction", [{"txHash": transaction_hash}]))


def _is_empty_code(code: Optional[str]) -> bool:
    return code in (None, "", "0x", "0x0")


