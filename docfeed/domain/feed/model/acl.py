"""Acl and NamedResource - access control pushed alongside DocIds."""

from enum import StrEnum

from docfeed.domain.feed.model.doc_id import DocId
from docfeed.domain.shared.model.value import ValueObject


class InheritanceType(StrEnum):
    """How an ACL combines with the ACL it inherits from."""

    CHILD_OVERRIDES = "child-overrides"
    PARENT_OVERRIDES = "parent-overrides"
    AND_BOTH_PERMIT = "and-both-permit"
    LEAF_NODE = "leaf-node"


class Acl(ValueObject):
    """Users and groups permitted or denied access to a document."""

    permit_users: frozenset[str] = frozenset()
    permit_groups: frozenset[str] = frozenset()
    deny_users: frozenset[str] = frozenset()
    deny_groups: frozenset[str] = frozenset()
    inherit_from: DocId | None = None
    inheritance_type: InheritanceType = InheritanceType.LEAF_NODE


class NamedResource(ValueObject):
    """A DocId that exists only so other documents can inherit its ACL.

    Named resources have no content and no Record attributes, and are never
    shown to users.
    """

    doc_id: DocId
    acl: Acl
