"""
Unit tests for the asset transfer contracts.

Tests follow the Given/When/Then pattern for clarity.
"""

import pytest

from alchemy_contracts.lib.transfers import (
    AssetTransfersCategory,
    AssetTransfersOrder,
    AssetTransfersParams,
    AssetTransfersResult,
    AssetTransfersWithMetadataParams,
    AssetTransfersWithMetadataResult,
    RawContract,
    category_list,
)


def raw_transfer(category, **overrides):
    transfer = {
        "category": category,
        "blockNum": "0x10",
        "from": "0xfrom",
        "to": "0xto",
        "value": None,
        "erc721TokenId": None,
        "erc1155Metadata": None,
        "tokenId": None,
        "asset": None,
        "hash": "0xhash",
        "rawContract": {"value": None, "address": "0xcontract", "decimal": None},
    }
    transfer.update(overrides)
    return transfer


class TestAssetTransfersParams:
    """Tests for request params and defaults."""

    def test_defaults_are_resolved_at_construction(self):
        """
        Given params with only a category
        When reading the fields
        Then the documented defaults should be set
        """
        # When
        params = AssetTransfersParams(category=["external"])

        # Then
        assert params.from_block == "0x0"
        assert params.to_block is None
        assert params.order == AssetTransfersOrder.ASCENDING
        assert params.max_count == 1000
        assert params.exclude_zero_value is False
        assert params.category == (AssetTransfersCategory.EXTERNAL,)

    def test_single_category_is_wrapped(self):
        """
        Given a single category instead of a list
        When building params
        Then it should be stored as a one-element tuple
        """
        # When
        from_string = AssetTransfersParams(category="erc20")
        from_enum = AssetTransfersParams(category=AssetTransfersCategory.ERC1155)

        # Then
        assert from_string.category == (AssetTransfersCategory.ERC20,)
        assert from_enum.category == (AssetTransfersCategory.ERC1155,)
        assert from_string.to_params()["category"] == ["erc20"]

    def test_rejects_empty_category(self):
        """
        Given an empty category list
        When building params
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="category"):
            AssetTransfersParams(category=[])

    def test_rejects_non_positive_max_count(self):
        """
        Given max_count of zero
        When building params
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="max_count"):
            AssetTransfersParams(category=["erc20"], max_count=0)

    def test_metadata_params_are_pinned_to_true(self):
        """
        Given metadata params
        When reading with_metadata on both param types
        Then only the metadata variant should request metadata
        """
        # When
        plain = AssetTransfersParams(category=["erc20"])
        with_metadata = AssetTransfersWithMetadataParams(category=["erc20"])

        # Then
        assert plain.with_metadata is False
        assert with_metadata.with_metadata is True
        assert with_metadata.to_params()["withMetadata"] is True

    def test_with_page_key_keeps_other_fields(self):
        """
        Given params with filters
        When continuing from a page key
        Then only the page key should change and the type should be kept
        """
        # Given
        params = AssetTransfersWithMetadataParams(
            category=["erc721"],
            contract_addresses=["0xbayc"],
            order=AssetTransfersOrder.DESCENDING,
            max_count=10,
        )

        # When
        next_params = params.with_page_key("key-2")

        # Then
        assert isinstance(next_params, AssetTransfersWithMetadataParams)
        assert next_params.page_key == "key-2"
        assert next_params.contract_addresses == ("0xbayc",)
        assert next_params.to_params()["maxCount"] == "0xa"
        assert next_params.to_params()["order"] == "desc"

    def test_category_list_rejects_unknown_category(self):
        """
        Given an unknown category name
        When converting category names
        Then a ValueError naming the category should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="Unsupported category: erc999"):
            category_list(["erc20", "erc999"])


class TestAssetTransfersResult:
    """Tests for the per-category invariants of transfer results."""

    def test_erc721_has_token_id_and_no_value(self):
        """
        Given an ERC721 transfer that carries a value
        When parsing it
        Then the value should be dropped and the token id kept
        """
        # When
        result = AssetTransfersResult.from_json(
            raw_transfer("erc721", erc721TokenId="0x01", tokenId="0x01", value=1.0)
        )

        # Then
        assert result.erc721_token_id == "0x01"
        assert result.erc1155_metadata is None
        assert result.value is None

    def test_erc721_without_token_id_is_rejected(self):
        """
        Given an ERC721 transfer without erc721TokenId
        When parsing it
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="missing erc721_token_id"):
            AssetTransfersResult.from_json(raw_transfer("erc721"))

    def test_erc1155_has_metadata(self):
        """
        Given an ERC1155 transfer
        When parsing it
        Then the ERC1155 metadata should be present
        """
        # When
        result = AssetTransfersResult.from_json(
            raw_transfer("erc1155", erc1155Metadata=[{"tokenId": "0x2", "value": "0x5"}])
        )

        # Then
        assert result.erc1155_metadata[0].token_id == "0x2"
        assert result.erc1155_metadata[0].value == "0x5"
        assert result.erc721_token_id is None

    def test_unique_id_is_kept(self):
        """
        Given a transfer carrying a uniqueId
        When parsing it
        Then the id should be kept on the result
        """
        # When
        result = AssetTransfersResult.from_json(
            raw_transfer(
                "erc1155",
                erc1155Metadata=[{"tokenId": "0x2", "value": "0x5"}],
                uniqueId="0xhash:log:7",
            )
        )

        # Then
        assert result.unique_id == "0xhash:log:7"

    def test_erc1155_without_metadata_is_rejected(self):
        """
        Given an ERC1155 transfer without metadata
        When parsing it
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="missing erc1155_metadata"):
            AssetTransfersResult.from_json(raw_transfer("erc1155"))

    def test_external_transfers_null_token_fields(self):
        """
        Given an external ETH transfer with token fields in the payload
        When parsing it
        Then all token specific fields should be None
        """
        # When
        result = AssetTransfersResult.from_json(
            raw_transfer(
                "external",
                value=0.5,
                asset="ETH",
                tokenId="0x1",
                rawContract={"value": "0x6f05b59d3b20000", "address": "0xcontract", "decimal": "0x12"},
            )
        )

        # Then
        assert result.value == 0.5
        assert result.erc721_token_id is None
        assert result.erc1155_metadata is None
        assert result.token_id is None
        assert result.raw_contract == RawContract(value="0x6f05b59d3b20000", address=None, decimal=None)

    def test_erc20_without_decimals_has_no_value(self):
        """
        Given an ERC20 transfer whose contract decimals are unknown
        When parsing it
        Then value should be None
        """
        # When
        result = AssetTransfersResult.from_json(raw_transfer("erc20", value=12.0))

        # Then
        assert result.value is None

    def test_metadata_result_requires_metadata(self):
        """
        Given a transfer without metadata
        When parsing it as a metadata result
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="missing metadata"):
            AssetTransfersWithMetadataResult.from_json(raw_transfer("external"))
