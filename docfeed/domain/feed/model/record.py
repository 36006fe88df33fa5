"""Record - immutable feed attributes for one document."""

from datetime import datetime

from pydantic import AnyUrl

from docfeed.domain.feed.model.doc_id import DocId
from docfeed.domain.shared.error import ValidationError
from docfeed.domain.shared.model.value import ValueObject


class Record(ValueObject):
    """Immutable feed attributes for a document identified by its DocId.

    Records are equal when all seven fields are equal. Build them with
    RecordBuilder; a bare ``Record(doc_id=...)`` carries every default.

    Attributes:
        doc_id: Identifier of the document this record describes.
        to_be_deleted: Whether the appliance is told the document was deleted.
        last_modified: Lets the appliance notice its copy is stale without
            waiting for a natural recrawl. None leaves detection to crawling.
        result_link: URL shown to users in results. None means the crawl URL
            of the DocId is shown.
        crawl_immediately: Document changed; recrawl with high priority.
        crawl_once: Crawl once and never detect modifications afterwards.
        lock: Keep the document in the index when the license limit is
            reached, evicting others instead.
    """

    doc_id: DocId
    to_be_deleted: bool = False
    last_modified: datetime | None = None
    result_link: AnyUrl | None = None
    crawl_immediately: bool = False
    crawl_once: bool = False
    lock: bool = False

    def __str__(self) -> str:
        last_modified = self.last_modified.isoformat() if self.last_modified else None
        return (
            f"Record(docid={self.doc_id.unique_id}"
            f",delete={self.to_be_deleted}"
            f",lastModified={last_modified}"
            f",resultLink={self.result_link}"
            f",crawlImmediately={self.crawl_immediately}"
            f",crawlOnce={self.crawl_once}"
            f",lock={self.lock})"
        )


def _require_doc_id(doc_id: DocId | None) -> DocId:
    if doc_id is None:
        raise ValidationError("doc_id cannot be None", field="doc_id")
    return doc_id


class RecordBuilder:
    """Mutable builder for Record instances.

    Every setter returns the builder for chaining. build() snapshots the
    current values and leaves the builder untouched, so one builder can
    produce a family of near-identical records.

    Example:
        record = (
            RecordBuilder(DocId("reports/2024.pdf"))
            .set_crawl_immediately(True)
            .set_lock(True)
            .build()
        )
    """

    def __init__(self, doc_id: DocId) -> None:
        self._doc_id = _require_doc_id(doc_id)
        self._delete = False
        self._last_modified: datetime | None = None
        self._link: AnyUrl | None = None
        self._crawl_immediately = False
        self._crawl_once = False
        self._lock = False

    @classmethod
    def from_record(cls, start_point: Record) -> "RecordBuilder":
        """Builder initialized from an existing record, for copy-then-modify."""
        if start_point is None:
            raise ValidationError("start_point cannot be None", field="start_point")
        builder = cls(start_point.doc_id)
        builder._delete = start_point.to_be_deleted
        builder._last_modified = start_point.last_modified
        builder._link = start_point.result_link
        builder._crawl_immediately = start_point.crawl_immediately
        builder._crawl_once = start_point.crawl_once
        builder._lock = start_point.lock
        return builder

    def set_doc_id(self, doc_id: DocId) -> "RecordBuilder":
        """Replace the identifier given to the constructor."""
        self._doc_id = _require_doc_id(doc_id)
        return self

    def set_delete_from_index(self, delete: bool) -> "RecordBuilder":
        self._delete = delete
        return self

    def set_last_modified(self, last_modified: datetime | None) -> "RecordBuilder":
        self._last_modified = last_modified
        return self

    def set_result_link(self, link: AnyUrl | str | None) -> "RecordBuilder":
        self._link = AnyUrl(link) if isinstance(link, str) else link
        return self

    def set_crawl_immediately(self, crawl_immediately: bool) -> "RecordBuilder":
        self._crawl_immediately = crawl_immediately
        return self

    def set_crawl_once(self, crawl_once: bool) -> "RecordBuilder":
        self._crawl_once = crawl_once
        return self

    def set_lock(self, lock: bool) -> "RecordBuilder":
        self._lock = lock
        return self

    def build(self) -> Record:
        """Create a single Record. Does not reset the builder."""
        return Record(
            doc_id=self._doc_id,
            to_be_deleted=self._delete,
            last_modified=self._last_modified,
            result_link=self._link,
            crawl_immediately=self._crawl_immediately,
            crawl_once=self._crawl_once,
            lock=self._lock,
        )
