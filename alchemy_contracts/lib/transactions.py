"""
Transaction receipt, contract deployment, pending transaction and private
transaction contracts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union


PENDING_TRANSACTIONS_METHOD = "alchemy_pendingTransactions"


@dataclass(frozen=True)
class TransactionReceiptsBlockNumber:
    # Block number as a hex string
    block_number: str

    def to_params(self) -> Dict[str, str]:
        return {"blockNumber": self.block_number}


@dataclass(frozen=True)
class TransactionReceiptsBlockHash:
    block_hash: str

    def to_params(self) -> Dict[str, str]:
        return {"blockHash": self.block_hash}


TransactionReceiptsParams = Union[TransactionReceiptsBlockNumber, TransactionReceiptsBlockHash]


def transaction_receipts_params(
    block_number: Optional[Union[str, int]] = None,
    block_hash: Optional[str] = None,
) -> TransactionReceiptsParams:
    """
    Build receipt lookup params from exactly one of block_number or block_hash.

    Args:
        block_number: Block number as an int or hex string
        block_hash: Block hash

    Raises:
        ValueError: If both or neither are given
    """
    if (block_number is None) == (block_hash is None):
        raise ValueError("Exactly one of block_number or block_hash must be provided")
    if block_hash is not None:
        return TransactionReceiptsBlockHash(block_hash=block_hash)
    if isinstance(block_number, int):
        block_number = hex(block_number)
    return TransactionReceiptsBlockNumber(block_number=block_number)


def _hex_to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value, 16)


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    transaction_index: int
    block_hash: str
    block_number: int
    from_address: str
    to_address: Optional[str]
    # Set only when the transaction created a contract
    contract_address: Optional[str]
    gas_used: int
    cumulative_gas_used: int
    effective_gas_price: Optional[int]
    logs_bloom: str
    logs: Tuple[Dict[str, Any], ...] = ()
    # 1 for success, 0 for failure. None for pre-Byzantium receipts.
    status: Optional[int] = None
    type: int = 0
    root: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        return cls(
            transaction_hash=data["transactionHash"],
            transaction_index=int(data["transactionIndex"], 16),
            block_hash=data["blockHash"],
            block_number=int(data["blockNumber"], 16),
            from_address=data["from"],
            to_address=data.get("to"),
            contract_address=data.get("contractAddress"),
            gas_used=int(data["gasUsed"], 16),
            cumulative_gas_used=int(data["cumulativeGasUsed"], 16),
            effective_gas_price=_hex_to_int(data.get("effectiveGasPrice")),
            logs_bloom=data.get("logsBloom", ""),
            logs=tuple(data.get("logs", [])),
            status=_hex_to_int(data.get("status")),
            type=int(data.get("type", "0x0"), 16),
            root=data.get("root"),
        )


@dataclass(frozen=True)
class TransactionReceiptsResponse:
    """
    Receipts for a block. receipts is None when the block was not found, which
    is not the same as a block with no transactions (an empty tuple).
    """

    receipts: Optional[Tuple[TransactionReceipt, ...]]

    @property
    def block_found(self) -> bool:
        return self.receipts is not None

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> "TransactionReceiptsResponse":
        receipts = (data or {}).get("receipts")
        if receipts is None:
            return cls(receipts=None)
        return cls(receipts=tuple(TransactionReceipt.from_json(r) for r in receipts))


@dataclass(frozen=True)
class DeployResult:
    block_number: int
    # None when the deployer could not be determined
    deployer_address: Optional[str] = None


def _as_address_list(value: Optional[Union[str, List[str], Tuple[str, ...]]]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class AlchemyPendingTransactionsEventFilter:
    """
    Subscription filter for Alchemy's alchemy_pendingTransactions endpoint.

    Leaving out every optional field subscribes to ALL pending transactions.
    Setting hashes_only returns only transaction hashes, which is the same
    payload as newPendingTransactions. The declared payload type does not
    change, so consumers must check which fields are populated.
    """

    from_address: Optional[Union[str, Tuple[str, ...]]] = None
    to_address: Optional[Union[str, Tuple[str, ...]]] = None
    hashes_only: bool = False
    method: Literal["alchemy_pendingTransactions"] = field(
        default=PENDING_TRANSACTIONS_METHOD, init=False
    )

    def __post_init__(self):
        # Keep the scalar-or-list shape but never hold a mutable list
        for name in ("from_address", "to_address"):
            value = getattr(self, name)
            if isinstance(value, list):
                object.__setattr__(self, name, tuple(value))

    @property
    def from_addresses(self) -> Tuple[str, ...]:
        return _as_address_list(self.from_address)

    @property
    def to_addresses(self) -> Tuple[str, ...]:
        return _as_address_list(self.to_address)

    def to_subscription_params(self) -> List[Any]:
        """Build the eth_subscribe params for this filter."""
        options: Dict[str, Any] = {}
        if self.from_address is not None:
            options["fromAddress"] = (
                self.from_address if isinstance(self.from_address, str) else list(self.from_address)
            )
        if self.to_address is not None:
            options["toAddress"] = (
                self.to_address if isinstance(self.to_address, str) else list(self.to_address)
            )
        if self.hashes_only:
            options["hashesOnly"] = True
        return [self.method, options]

    def matches(self, transaction: "PendingTransaction") -> bool:
        """
        Check a full pending transaction against the address filters.

        Addresses are compared case-insensitively. Hash-only payloads carry no
        addresses and only match a filter without address constraints.
        """
        from_addresses = {a.lower() for a in self.from_addresses}
        to_addresses = {a.lower() for a in self.to_addresses}
        if not from_addresses and not to_addresses:
            return True
        # Either filter matching is enough, as on the server
        if from_addresses and transaction.from_address and transaction.from_address.lower() in from_addresses:
            return True
        if to_addresses and transaction.to_address and transaction.to_address.lower() in to_addresses:
            return True
        return False


@dataclass(frozen=True)
class PendingTransaction:
    """
    A pending transaction notification. When the subscription was made with
    hashes_only, only hash is populated.
    """

    hash: str
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    value: Optional[int] = None
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    nonce: Optional[int] = None
    input: Optional[str] = None

    @property
    def is_hash_only(self) -> bool:
        return self.from_address is None

    @classmethod
    def from_json(cls, data: Union[str, Dict[str, Any]]) -> "PendingTransaction":
        if isinstance(data, str):
            return cls(hash=data)
        return cls(
            hash=data["hash"],
            from_address=data.get("from"),
            to_address=data.get("to"),
            value=_hex_to_int(data.get("value")),
            gas=_hex_to_int(data.get("gas")),
            gas_price=_hex_to_int(data.get("gasPrice")),
            nonce=_hex_to_int(data.get("nonce")),
            input=data.get("input"),
        )


@dataclass(frozen=True)
class SendPrivateTransactionOptions:
    """
    Options for send_private_transaction.

    Fast mode transactions cannot be cancelled with cancel_private_transaction.
    See https://docs.flashbots.net/flashbots-protect/rpc/fast-mode
    """

    fast: bool = False
