"""Renders gsafeed XML documents for records and named resources."""

from collections.abc import Sequence
from email.utils import format_datetime
from xml.etree import ElementTree

from docfeed.domain.feed.codec import DocIdCodec
from docfeed.domain.feed.model import Acl, NamedResource, Record

METADATA_AND_URL = "metadata-and-url"
INCREMENTAL = "incremental"

_XML_PROLOG = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE gsafeed PUBLIC "-//Google//DTD GSA Feeds//EN" "">\n'
)


class GsaFeedFileMaker:
    """Builds feed file contents. DocIds become URLs through the codec."""

    def __init__(self, codec: DocIdCodec, datasource: str, mimetype: str = "text/plain") -> None:
        self._codec = codec
        self._datasource = datasource
        self._mimetype = mimetype

    @property
    def datasource(self) -> str:
        return self._datasource

    def make_metadata_and_url_feed(self, records: Sequence[Record]) -> str:
        root, group = self._start(METADATA_AND_URL)
        for record in records:
            group.append(self._record_element(record))
        return self._finish(root)

    def make_named_resource_feed(self, resources: Sequence[NamedResource]) -> str:
        root, group = self._start(INCREMENTAL)
        for resource in resources:
            group.append(self._acl_element(self._codec.encode(resource.doc_id), resource.acl))
        return self._finish(root)

    def _start(self, feed_type: str) -> tuple[ElementTree.Element, ElementTree.Element]:
        root = ElementTree.Element("gsafeed")
        header = ElementTree.SubElement(root, "header")
        ElementTree.SubElement(header, "datasource").text = self._datasource
        ElementTree.SubElement(header, "feedtype").text = feed_type
        group = ElementTree.SubElement(root, "group")
        return root, group

    def _finish(self, root: ElementTree.Element) -> str:
        return _XML_PROLOG + ElementTree.tostring(root, encoding="unicode") + "\n"

    def _record_element(self, record: Record) -> ElementTree.Element:
        action = "delete" if record.to_be_deleted else self._codec.action(record.doc_id)
        element = ElementTree.Element(
            "record",
            {
                "url": self._codec.encode(record.doc_id),
                "action": action,
                "mimetype": self._mimetype,
            },
        )
        if record.last_modified is not None:
            element.set("last-modified", format_datetime(record.last_modified))
        if record.result_link is not None:
            # Without displayurl the appliance shows the crawl URL
            element.set("displayurl", str(record.result_link))
        if record.lock:
            element.set("lock", "true")
        if record.crawl_immediately:
            element.set("crawl-immediately", "true")
        if record.crawl_once:
            element.set("crawl-once", "true")
        return element

    def _acl_element(self, url: str, acl: Acl) -> ElementTree.Element:
        element = ElementTree.Element("acl", {"url": url})
        if acl.inherit_from is not None:
            element.set("inherit-from", self._codec.encode(acl.inherit_from))
        element.set("inheritance-type", acl.inheritance_type.value)

        principals = [
            ("user", "permit", acl.permit_users),
            ("group", "permit", acl.permit_groups),
            ("user", "deny", acl.deny_users),
            ("group", "deny", acl.deny_groups),
        ]
        for scope, access, names in principals:
            for name in sorted(names):
                principal = ElementTree.SubElement(
                    element, "principal", {"scope": scope, "access": access}
                )
                principal.text = name
        return element
