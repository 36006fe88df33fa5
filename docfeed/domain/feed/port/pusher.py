"""DocIdPusher - at-will pushing of DocIds to the search appliance."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from docfeed.domain.feed.backoff import ExceptionHandler
from docfeed.domain.feed.model import Acl, DocId, Record


class PushCancelledError(asyncio.CancelledError):
    """A push was cancelled after at least one item reached the appliance.

    Items before ``first_unsent`` were delivered. It is a CancelledError, so
    code that does not care about partial progress handles it as an ordinary
    cancellation. A task running the push ends cancelled, and awaiting it
    re-raises this exception.

    Attributes:
        first_unsent: The first item not delivered, of the pushed item type
            (a Record from push_records, a DocId from the other pushes).
    """

    def __init__(self, first_unsent: Record | DocId) -> None:
        super().__init__(f"Push cancelled; first unsent item: {first_unsent}")
        self.first_unsent = first_unsent


class DocIdPusher(ABC):
    """Pushes DocIds, Records and named resources to the appliance.

    Every push blocks the calling task until all items were handed to the
    appliance or the exception handler gave up. That can take a while under
    error conditions, but is not something that generally needs avoiding.

    A handler of None means the implementation's default handler, exactly as
    if the argument had been omitted.

    Cancellation raises a plain asyncio.CancelledError when nothing had been
    delivered yet, and PushCancelledError naming the first unsent item when
    something had.
    """

    async def push_doc_ids(
        self,
        doc_ids: Iterable[DocId],
        handler: ExceptionHandler | None = None,
    ) -> DocId | None:
        """Push DocIds as Records with default values.

        Returns:
            None on success, otherwise the first DocId to fail.

        Raises:
            PushCancelledError: If cancelled after some DocIds were sent.
            asyncio.CancelledError: If cancelled before any DocId was sent.
        """
        records = [Record(doc_id=doc_id) for doc_id in doc_ids]
        try:
            failed = await self.push_records(records, handler)
        except PushCancelledError as e:
            raise PushCancelledError(_doc_id_of(e.first_unsent)) from e
        return failed.doc_id if failed is not None else None

    @abstractmethod
    async def push_records(
        self,
        records: Iterable[Record],
        handler: ExceptionHandler | None = None,
    ) -> Record | None:
        """Push Records.

        Returns:
            None on success, otherwise the first Record to fail.

        Raises:
            PushCancelledError: If cancelled after some Records were sent.
            asyncio.CancelledError: If cancelled before any Record was sent.
        """
        ...

    @abstractmethod
    async def push_named_resources(
        self,
        resources: Mapping[DocId, Acl],
        handler: ExceptionHandler | None = None,
    ) -> DocId | None:
        """Push named resources: DocIds without content that exist only for ACL inheritance.

        The returned DocId follows the iteration order of ``resources``, so
        pass a mapping with a predictable order (a dict) when the result is used.

        Returns:
            None on success, otherwise the first DocId to fail.

        Raises:
            PushCancelledError: If cancelled after some resources were sent.
            asyncio.CancelledError: If cancelled before any resource was sent.
        """
        ...


def _doc_id_of(item: Record | DocId) -> DocId:
    return item.doc_id if isinstance(item, Record) else item
