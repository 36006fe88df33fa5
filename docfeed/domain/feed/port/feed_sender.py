"""Port for delivering one feed of items to the search appliance."""

from abc import abstractmethod
from collections.abc import Sequence
from typing import Protocol

from docfeed.domain.feed.model import NamedResource, Record

FeedItem = Record | NamedResource


class FeedSender(Protocol):
    """Delivers a batch of items as a single feed.

    Implementations raise ExternalServiceError for failures worth retrying.
    Any other exception aborts the push.
    """

    @abstractmethod
    async def send_records(self, records: Sequence[Record]) -> None: ...

    @abstractmethod
    async def send_named_resources(self, resources: Sequence[NamedResource]) -> None: ...
