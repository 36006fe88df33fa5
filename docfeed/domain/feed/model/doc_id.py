"""DocId - identifies one document in the repository."""

from enum import StrEnum
from typing import Any

from pydantic import Field

from docfeed.domain.shared.error import ValidationError
from docfeed.domain.shared.model.value import ValueObject


class DocReadPermissions(StrEnum):
    """Who may read a document, as announced to the search appliance."""

    PUBLIC = "public"
    PRIVATE = "private"  # Governed by the document's ACL
    HEAD_REQUEST = "head-request"  # Appliance asks the adaptor per user


class Disposition(StrEnum):
    """Feed action for a DocId."""

    ADD = "add"
    DELETE = "delete"


class DocId(ValueObject):
    """Unique document in the repository.

    The appliance is given DocIds to insert documents for crawling and
    indexing, and hands them back when it asks for a document's content or
    for a user's read permissions.

    A DocId with the DELETE disposition asks the appliance to drop the
    document quickly instead of waiting for a crawl to notice it is gone.

    Attributes:
        unique_id: Repository-unique, opaque identifier. An empty or None id
            raises ValidationError, as does passing permissions=None.
        permissions: Read permission descriptor.
        disposition: Feed action for this identifier.
    """

    unique_id: str = Field(min_length=1)
    permissions: DocReadPermissions = DocReadPermissions.PUBLIC
    disposition: Disposition = Disposition.ADD

    def __init__(self, unique_id: str, /, **data: Any) -> None:
        if not unique_id:
            raise ValidationError("unique_id cannot be empty", field="unique_id")
        if "permissions" in data and data["permissions"] is None:
            raise ValidationError("permissions cannot be None", field="permissions")
        super().__init__(unique_id=unique_id, **data)

    @classmethod
    def deleted(cls, unique_id: str) -> "DocId":
        """DocId that removes the document from the appliance's index."""
        return cls(
            unique_id,
            permissions=DocReadPermissions.HEAD_REQUEST,
            disposition=Disposition.DELETE,
        )

    @property
    def feed_action(self) -> str:
        return self.disposition.value

    def __str__(self) -> str:
        if self.disposition is Disposition.DELETE:
            return f"DeletedDocId({self.unique_id})"
        return f"DocId({self.unique_id}|{self.permissions})"
