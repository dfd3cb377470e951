"""
Pytest configuration and shared fixtures for alchemy-contracts tests.
"""

import pytest

from alchemy_contracts.lib.alchemy_client import AlchemyClient


@pytest.fixture
def sample_wallet_address():
    """Sample Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def sample_contract_address():
    """Sample NFT contract address for testing."""
    return "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D"  # BAYC


@pytest.fixture
def mock_alchemy_api_key():
    """Mock Alchemy API key for testing."""
    return "test-api-key-12345"


@pytest.fixture
def rpc_url(mock_alchemy_api_key):
    """JSON-RPC endpoint for the default network."""
    return f"https://eth-mainnet.g.alchemy.com/v2/{mock_alchemy_api_key}"


@pytest.fixture
def nft_api_url(mock_alchemy_api_key):
    """NFT API base URL for the default network."""
    return f"https://eth-mainnet.g.alchemy.com/nft/v2/{mock_alchemy_api_key}"


@pytest.fixture
def client(mock_alchemy_api_key):
    """AlchemyClient with retry delays small enough for tests."""
    return AlchemyClient(mock_alchemy_api_key, initial_delay=0.001, max_retries=2, jitter=0)
