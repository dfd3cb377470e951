"""
Unit tests for the transaction contracts.

Tests follow the Given/When/Then pattern for clarity.
"""

import pytest

from alchemy_contracts.lib.transactions import (
    PENDING_TRANSACTIONS_METHOD,
    AlchemyPendingTransactionsEventFilter,
    PendingTransaction,
    TransactionReceiptsBlockHash,
    TransactionReceiptsBlockNumber,
    TransactionReceiptsResponse,
    transaction_receipts_params,
)
from tests.utils import make_receipt


class TestTransactionReceiptsParams:
    """Tests for the block number / block hash choice."""

    def test_block_number_int_becomes_hex(self):
        """
        Given a block number as an int
        When building receipt params
        Then the number should be sent as hex
        """
        # When
        params = transaction_receipts_params(block_number=15_000_000)

        # Then
        assert params == TransactionReceiptsBlockNumber(block_number="0xe4e1c0")
        assert params.to_params() == {"blockNumber": "0xe4e1c0"}

    def test_block_hash(self):
        """
        Given a block hash
        When building receipt params
        Then only blockHash should be sent
        """
        # When
        params = transaction_receipts_params(block_hash="0xhash")

        # Then
        assert isinstance(params, TransactionReceiptsBlockHash)
        assert params.to_params() == {"blockHash": "0xhash"}

    @pytest.mark.parametrize(
        "kwargs",
        [{}, {"block_number": "0x1", "block_hash": "0xhash"}],
    )
    def test_requires_exactly_one(self, kwargs):
        """
        Given both or neither of block_number and block_hash
        When building receipt params
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="Exactly one"):
            transaction_receipts_params(**kwargs)


class TestTransactionReceiptsResponse:
    """Tests for receipt parsing."""

    def test_unknown_block(self):
        """
        Given a null receipts field
        When parsing the response
        Then the block should be reported as not found
        """
        # When
        response = TransactionReceiptsResponse.from_json({"receipts": None})

        # Then
        assert response.receipts is None
        assert not response.block_found

    def test_empty_block(self):
        """
        Given an empty receipts list
        When parsing the response
        Then the block should be found with no receipts
        """
        # When
        response = TransactionReceiptsResponse.from_json({"receipts": []})

        # Then
        assert response.receipts == ()
        assert response.block_found

    def test_receipt_hex_fields_become_ints(self):
        """
        Given a receipt with hex quantities
        When parsing it
        Then quantities should be ints
        """
        # When
        response = TransactionReceiptsResponse.from_json(
            {"receipts": [make_receipt(block_number=42, contract_address="0xnew")]}
        )

        # Then
        receipt = response.receipts[0]
        assert receipt.block_number == 42
        assert receipt.gas_used == 21000
        assert receipt.status == 1
        assert receipt.type == 2
        assert receipt.contract_address == "0xnew"


class TestPendingTransactionsFilter:
    """Tests for the alchemy_pendingTransactions subscription filter."""

    def test_empty_filter_subscribes_to_everything(self):
        """
        Given a filter with no fields
        When building subscription params
        Then only the method should be sent with empty options
        """
        # When
        event_filter = AlchemyPendingTransactionsEventFilter()

        # Then
        assert event_filter.method == PENDING_TRANSACTIONS_METHOD
        assert event_filter.to_subscription_params() == [PENDING_TRANSACTIONS_METHOD, {}]
        assert event_filter.matches(PendingTransaction(hash="0x1"))

    def test_scalar_and_list_addresses(self):
        """
        Given a scalar from address and a list of to addresses
        When building subscription params
        Then the shapes should be kept on the wire
        """
        # When
        event_filter = AlchemyPendingTransactionsEventFilter(
            from_address="0xA", to_address=["0xB", "0xC"], hashes_only=True
        )

        # Then
        assert event_filter.to_address == ("0xB", "0xC")
        assert event_filter.from_addresses == ("0xA",)
        assert event_filter.to_subscription_params() == [
            PENDING_TRANSACTIONS_METHOD,
            {"fromAddress": "0xA", "toAddress": ["0xB", "0xC"], "hashesOnly": True},
        ]

    def test_matches_either_address_case_insensitively(self):
        """
        Given a filter on from and to addresses
        When matching transactions
        Then a match on either address should be enough
        """
        # Given
        event_filter = AlchemyPendingTransactionsEventFilter(
            from_address="0xAbC", to_address="0xDeF"
        )

        # When / Then
        assert event_filter.matches(PendingTransaction(hash="0x1", from_address="0xabc", to_address="0x9"))
        assert event_filter.matches(PendingTransaction(hash="0x2", from_address="0x9", to_address="0xDEF"))
        assert not event_filter.matches(PendingTransaction(hash="0x3", from_address="0x9", to_address="0x8"))

    def test_hash_only_payload(self):
        """
        Given a hashes_only notification
        When parsing it
        Then only the hash should be populated
        """
        # When
        transaction = PendingTransaction.from_json("0xhash")

        # Then
        assert transaction.is_hash_only
        assert transaction.hash == "0xhash"
        assert not AlchemyPendingTransactionsEventFilter(from_address="0xa").matches(transaction)

    def test_full_payload(self):
        """
        Given a full pending transaction notification
        When parsing it
        Then hex quantities should be ints
        """
        # When
        transaction = PendingTransaction.from_json(
            {"hash": "0xh", "from": "0xa", "to": "0xb", "value": "0x10", "nonce": "0x2"}
        )

        # Then
        assert not transaction.is_hash_only
        assert transaction.value == 16
        assert transaction.nonce == 2
        assert transaction.gas is None
