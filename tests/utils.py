"""
Raw API payload builders shared by the tests.
"""


def make_receipt(
    transaction_hash="0xabc",
    block_number=1,
    from_address="0xfrom",
    to_address="0xto",
    contract_address=None,
):
    """Build a raw transaction receipt as returned by the JSON-RPC API."""
    return {
        "transactionHash": transaction_hash,
        "transactionIndex": "0x0",
        "blockHash": "0xblockhash",
        "blockNumber": hex(block_number),
        "from": from_address,
        "to": to_address,
        "contractAddress": contract_address,
        "gasUsed": "0x5208",
        "cumulativeGasUsed": "0x5208",
        "effectiveGasPrice": "0x3b9aca00",
        "logsBloom": "0x00",
        "logs": [],
        "status": "0x1",
        "type": "0x2",
    }


def make_raw_nft(contract_address, token_id, balance="1", with_metadata=True, is_spam=False):
    """Build a raw NFT as returned by the NFT API."""
    nft = {
        "contract": {"address": contract_address},
        "id": {"tokenId": hex(token_id), "tokenMetadata": {"tokenType": "ERC721"}},
        "balance": balance,
    }
    if with_metadata:
        nft.update(
            {
                "title": f"Token #{token_id}",
                "description": "A test token",
                "tokenUri": {
                    "raw": f"ipfs://Qm/{token_id}",
                    "gateway": f"https://ipfs.io/ipfs/Qm/{token_id}",
                },
                "media": [{"raw": "ipfs://img", "gateway": "https://ipfs.io/img", "bytes": 2048}],
                "metadata": {"name": f"Token #{token_id}", "attributes": [{"trait_type": "Hat"}]},
                "timeLastUpdated": "2022-06-01T00:00:00.000Z",
            }
        )
        if is_spam:
            nft["spamInfo"] = {"isSpam": "true", "classifications": ["Erc721DishonestTotalSupply"]}
    return nft
