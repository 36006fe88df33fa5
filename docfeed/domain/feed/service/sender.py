"""DocIdSender - batches items into feeds and drives retries."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from itertools import batched

from docfeed.domain.feed.backoff import ExceptionHandler, default_handler
from docfeed.domain.feed.model import Acl, DocId, NamedResource, Record
from docfeed.domain.feed.port import DocIdPusher, FeedItem, FeedSender, PushCancelledError
from docfeed.domain.shared.error import ExternalServiceError

logger = logging.getLogger(__name__)


class DocIdSender(DocIdPusher):
    """Pushes items to the appliance in feeds of at most ``max_feed_size`` items.

    Items are sent in iteration order. Each feed is retried under the
    exception handler; when the handler gives up, the first item of that feed
    is returned and no later feed is attempted. Records and named resources
    follow the same abort-on-first-failure policy.

    Only ExternalServiceError is retried. Anything else raised by the feed
    sender propagates.

    On cancellation, CancelledError propagates when no feed had been
    delivered yet. Otherwise PushCancelledError is raised carrying the first
    undelivered item.
    """

    def __init__(
        self,
        feed_sender: FeedSender,
        max_feed_size: int = 5000,
        handler: ExceptionHandler | None = None,
    ) -> None:
        if max_feed_size < 1:
            raise ValueError("max_feed_size must be at least 1")
        self._feed_sender = feed_sender
        self._max_feed_size = max_feed_size
        self._default_handler = handler if handler is not None else default_handler()

    @property
    def max_feed_size(self) -> int:
        return self._max_feed_size

    async def push_records(
        self,
        records: Iterable[Record],
        handler: ExceptionHandler | None = None,
    ) -> Record | None:
        return await self._push_items(
            list(records), self._feed_sender.send_records, handler, kind="records"
        )

    async def push_named_resources(
        self,
        resources: Mapping[DocId, Acl],
        handler: ExceptionHandler | None = None,
    ) -> DocId | None:
        items = [NamedResource(doc_id=doc_id, acl=acl) for doc_id, acl in resources.items()]
        try:
            failed = await self._push_items(
                items, self._feed_sender.send_named_resources, handler, kind="named resources"
            )
        except PushCancelledError as e:
            raise PushCancelledError(e.first_unsent.doc_id) from e
        return failed.doc_id if failed is not None else None

    async def _push_items[T: FeedItem](
        self,
        items: list[T],
        send: Callable[[Sequence[T]], Awaitable[None]],
        handler: ExceptionHandler | None,
        kind: str,
    ) -> T | None:
        if handler is None:
            handler = self._default_handler
        delivered = 0

        for batch in batched(items, self._max_feed_size):
            try:
                sent = await self._send_batch(batch, send, handler)
            except asyncio.CancelledError as e:
                if delivered == 0:
                    raise
                logger.warning(
                    f"Push of {kind} cancelled after {delivered}/{len(items)} items were sent"
                )
                raise PushCancelledError(batch[0]) from e

            if not sent:
                logger.error(
                    f"Push of {kind} failed after {delivered}/{len(items)} items were sent; "
                    f"first failing item: {batch[0]}"
                )
                return batch[0]
            delivered += len(batch)

        logger.debug(f"Pushed {delivered} {kind}")
        return None

    async def _send_batch[T: FeedItem](
        self,
        batch: tuple[T, ...],
        send: Callable[[Sequence[T]], Awaitable[None]],
        handler: ExceptionHandler,
    ) -> bool:
        """Send one feed, retrying while the handler allows. Returns False if it gave up."""
        ntries = 0
        while True:
            try:
                await send(batch)
                return True
            except ExternalServiceError as e:
                ntries += 1
                if not await handler.handle_exception(e, ntries):
                    return False
