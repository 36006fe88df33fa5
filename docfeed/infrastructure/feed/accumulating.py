"""In-memory DocIdPusher that records pushed DocIds instead of sending them."""

import logging
from collections.abc import Iterable, Mapping

from docfeed.domain.feed.backoff import ExceptionHandler
from docfeed.domain.feed.model import Acl, DocId, Record
from docfeed.domain.feed.port import DocIdPusher
from docfeed.domain.shared.error import UnsupportedOperationError

logger = logging.getLogger(__name__)


class AccumulatingDocIdPusher(DocIdPusher):
    """Collects the DocId of every pushed Record, in push order.

    Every push succeeds. Named resources are not supported.
    Used for dry runs and in tests.
    """

    def __init__(self) -> None:
        self._doc_ids: list[DocId] = []

    @property
    def doc_ids(self) -> tuple[DocId, ...]:
        """DocIds pushed since creation or the last reset()."""
        return tuple(self._doc_ids)

    def reset(self) -> None:
        self._doc_ids.clear()

    async def push_records(
        self,
        records: Iterable[Record],
        handler: ExceptionHandler | None = None,
    ) -> Record | None:
        for record in records:
            self._doc_ids.append(record.doc_id)
        logger.debug(f"Accumulated {len(self._doc_ids)} DocIds")
        return None

    async def push_named_resources(
        self,
        resources: Mapping[DocId, Acl],
        handler: ExceptionHandler | None = None,
    ) -> DocId | None:
        raise UnsupportedOperationError("Named resources are not supported by AccumulatingDocIdPusher")
