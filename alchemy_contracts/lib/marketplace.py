"""
Floor price and contract refresh contracts.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class Marketplace(str, Enum):
    """Marketplaces reported by get_floor_price. Keys match the wire format."""

    OPENSEA = "openSea"
    LOOKSRARE = "looksRare"


@dataclass(frozen=True)
class FloorPriceMarketplace:
    """Floor price of a collection on one marketplace."""

    floor_price: float
    price_currency: str
    # Link to the collection on the marketplace
    collection_url: str
    # UTC timestamp of when the floor price was retrieved
    retrieved_at: str

    @property
    def error(self) -> None:
        return None


@dataclass(frozen=True)
class FloorPriceError:
    """Error fetching the floor price from one marketplace."""

    error: str


FloorPrice = Union[FloorPriceMarketplace, FloorPriceError]


def parse_floor_price(data: Optional[Dict[str, Any]]) -> FloorPrice:
    if data is None:
        return FloorPriceError(error="Marketplace missing from response")
    if "error" in data:
        return FloorPriceError(error=str(data["error"]))
    return FloorPriceMarketplace(
        floor_price=data["floorPrice"],
        price_currency=data["priceCurrency"],
        collection_url=data["collectionUrl"],
        retrieved_at=data["retrievedAt"],
    )


@dataclass(frozen=True)
class GetFloorPriceResponse:
    """
    Floor price per marketplace. Every marketplace is always present; a
    marketplace that failed carries a FloorPriceError.
    """

    open_sea: FloorPrice
    looks_rare: FloorPrice

    def __getitem__(self, marketplace: Marketplace) -> FloorPrice:
        if marketplace == Marketplace.OPENSEA:
            return self.open_sea
        if marketplace == Marketplace.LOOKSRARE:
            return self.looks_rare
        raise KeyError(marketplace)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "GetFloorPriceResponse":
        return cls(
            open_sea=parse_floor_price(data.get(Marketplace.OPENSEA.value)),
            looks_rare=parse_floor_price(data.get(Marketplace.LOOKSRARE.value)),
        )


class RefreshState(str, Enum):
    """The state of an NFT contract refresh."""

    # The contract is not an NFT or does not contain metadata.
    DOES_NOT_EXIST = "does_not_exist"
    ALREADY_QUEUED = "already_queued"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    QUEUED = "queued"
    # The contract could not be queued due to an internal error.
    QUEUE_FAILED = "queue_failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RefreshState.DOES_NOT_EXIST, RefreshState.FINISHED, RefreshState.QUEUE_FAILED)

    @property
    def reports_progress(self) -> bool:
        return self in (RefreshState.IN_PROGRESS, RefreshState.FINISHED)


# States a refresh request can report on the first observation
INITIAL_REFRESH_STATES = frozenset(
    [
        RefreshState.DOES_NOT_EXIST,
        RefreshState.QUEUED,
        RefreshState.ALREADY_QUEUED,
        RefreshState.QUEUE_FAILED,
    ]
)

_REFRESH_TRANSITIONS = {
    RefreshState.QUEUED: frozenset(
        [RefreshState.QUEUED, RefreshState.ALREADY_QUEUED, RefreshState.IN_PROGRESS, RefreshState.FINISHED]
    ),
    RefreshState.ALREADY_QUEUED: frozenset(
        [RefreshState.ALREADY_QUEUED, RefreshState.IN_PROGRESS, RefreshState.FINISHED]
    ),
    RefreshState.IN_PROGRESS: frozenset([RefreshState.IN_PROGRESS, RefreshState.FINISHED]),
}


def can_transition(previous: Optional[RefreshState], current: RefreshState) -> bool:
    """
    Check whether a refresh may move from previous to current.

    previous is None for the first observation of a refresh cycle. Terminal
    states have no successors: a request after one starts a new cycle.
    """
    if previous is None:
        return current in INITIAL_REFRESH_STATES
    return current in _REFRESH_TRANSITIONS.get(previous, frozenset())


_PROGRESS_PATTERN = re.compile(r"^\d+$")


@dataclass(frozen=True)
class RefreshContractResult:
    contract_address: str
    refresh_state: RefreshState
    # Percentage of tokens refreshed as an integer string. None until the
    # refresh is running.
    progress: Optional[str] = None

    def __post_init__(self):
        if self.refresh_state.reports_progress:
            if self.progress is None or not _PROGRESS_PATTERN.match(self.progress):
                raise ValueError(
                    f"Refresh in state {self.refresh_state.value} needs an integer progress, "
                    f"got {self.progress!r}"
                )
        elif self.progress is not None:
            raise ValueError(f"Refresh in state {self.refresh_state.value} cannot report progress")

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RefreshContractResult":
        state = RefreshState(data.get("reingestionState", data.get("refreshState")))
        progress = data.get("progress")
        if progress is not None:
            progress = str(progress)
        return cls(
            contract_address=data.get("contractAddress", ""),
            refresh_state=state,
            progress=progress if state.reports_progress else None,
        )
