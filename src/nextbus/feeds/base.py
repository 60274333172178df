from typing import Iterable, Protocol

from ..models import TripUpdateRecord


class FeedError(RuntimeError):
    """The upstream feed could not be fetched or decoded."""


class FeedProvider(Protocol):
    async def fetch_trip_updates(self) -> Iterable[TripUpdateRecord]:
        ...
