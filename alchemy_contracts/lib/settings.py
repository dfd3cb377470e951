"""
Client configuration for the Alchemy API.

This module defines the supported networks and the settings object used to
build an AlchemyClient, along with the URL helpers for the JSON-RPC and NFT
REST endpoints.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


DEFAULT_API_KEY = "demo"
DEFAULT_MAX_RETRIES = 5


class Network(str, Enum):
    """
    The networks supported by Alchemy.

    Note that some methods are not available on all networks.
    """

    ETH_MAINNET = "eth-mainnet"
    ETH_ROPSTEN = "eth-ropsten"
    ETH_GOERLI = "eth-goerli"
    ETH_KOVAN = "eth-kovan"
    ETH_RINKEBY = "eth-rinkeby"
    OPT_MAINNET = "opt-mainnet"
    OPT_KOVAN = "opt-kovan"
    OPT_GOERLI = "opt-goerli"
    ARB_MAINNET = "arb-mainnet"
    ARB_RINKEBY = "arb-rinkeby"
    ARB_GOERLI = "arb-goerli"
    MATIC_MAINNET = "polygon-mainnet"
    MATIC_MUMBAI = "polygon-mumbai"
    ASTAR_MAINNET = "astar-mainnet"


def parse_network(name: str) -> Network:
    """
    Resolve a network from its slug (e.g. "eth-mainnet") or enum name.

    Raises:
        ValueError: If the network is not supported
    """
    for network in Network:
        if name.lower() in (network.value, network.name.lower()):
            return network
    supported = ", ".join(n.value for n in Network)
    raise ValueError(f"Unsupported network: {name}. Supported: {supported}")


@dataclass(frozen=True)
class AlchemySettings:
    """
    Options used to configure an AlchemyClient.

    The network is fixed for the lifetime of a client. To use a different
    network, build a new client.
    """

    api_key: str = DEFAULT_API_KEY
    network: Network = Network.ETH_MAINNET
    max_retries: int = DEFAULT_MAX_RETRIES
    # Overrides the URL derived from network and api_key. Not all methods work
    # with custom URLs.
    url: Optional[str] = None

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def get_base_url(self) -> str:
        """Get the JSON-RPC URL for the configured network."""
        if self.url is not None:
            return self.url
        return f"https://{self.network.value}.g.alchemy.com/v2/{self.api_key}"

    def get_nft_api_url(self) -> str:
        """Get the NFT API URL for the configured network."""
        if self.url is not None:
            return self.url.rstrip("/")
        return f"https://{self.network.value}.g.alchemy.com/nft/v2/{self.api_key}"
