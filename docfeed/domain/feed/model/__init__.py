"""Feed domain models."""

from docfeed.domain.feed.model.acl import Acl, InheritanceType, NamedResource
from docfeed.domain.feed.model.doc_id import Disposition, DocId, DocReadPermissions
from docfeed.domain.feed.model.record import Record, RecordBuilder

__all__ = [
    "Acl",
    "Disposition",
    "DocId",
    "DocReadPermissions",
    "InheritanceType",
    "NamedResource",
    "Record",
    "RecordBuilder",
]
