"""DocIdCodec - maps DocIds to and from the URLs used in feed files."""

import codecs
import logging
from urllib.parse import quote, unquote, urlsplit

from docfeed.config import FeedConfig, GsaConfig
from docfeed.domain.feed.model.doc_id import DocId
from docfeed.domain.shared.error import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


class DocIdCodec:
    """Bidirectional mapping between DocId unique ids and feed URLs.

    Each '/'-separated segment of the unique id is percent-encoded on its own,
    so slashes in the id stay path separators:

        base_url="http://adaptor:5678/doc", unique_id="a b/c"
        -> "http://adaptor:5678/doc/a%20b/c"

    With pass_through enabled the unique id is already a complete URL and is
    used verbatim in both directions.
    """

    def __init__(
        self,
        base_url: str,
        encoding: str = "UTF-8",
        pass_through: bool = False,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._base_path = urlsplit(self._base_url).path
        self._encoding = encoding
        self._pass_through = pass_through
        self._encoding_checked = False

    @classmethod
    def from_config(cls, feed: FeedConfig, gsa: GsaConfig) -> "DocIdCodec":
        return cls(
            base_url=feed.base_url,
            encoding=gsa.character_encoding,
            pass_through=feed.pass_doc_id_unmodified,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def pass_through(self) -> bool:
        return self._pass_through

    def encode(self, doc_id: DocId) -> str:
        """Feed URL for a DocId."""
        if self._pass_through:
            return doc_id.unique_id
        self._check_encoding()
        parts = doc_id.unique_id.split("/")
        try:
            encoded = "".join(
                "/" + quote(part, safe="", encoding=self._encoding) for part in parts
            )
        except UnicodeEncodeError as e:
            raise ValidationError(
                f"DocId {doc_id.unique_id!r} cannot be encoded as {self._encoding}: {e.reason}",
                field="unique_id",
            ) from e
        return self._base_url + encoded

    def decode(self, url: str) -> str:
        """Unique id of the DocId a feed URL was produced from."""
        if self._pass_through:
            return url
        self._check_encoding()
        path = urlsplit(url).path
        prefix = self._base_path + "/"
        if not path.startswith(prefix):
            raise ValidationError(f"URL {url!r} is not under {self._base_url!r}", field="url")
        parts = path[len(prefix) :].split("/")
        try:
            return "/".join(
                unquote(part, encoding=self._encoding, errors="strict") for part in parts
            )
        except UnicodeDecodeError as e:
            raise ValidationError(
                f"URL {url!r} is not valid percent-encoded {self._encoding}: {e.reason}",
                field="url",
            ) from e

    def action(self, doc_id: DocId) -> str:
        """Feed action verb for a DocId: "add" or "delete"."""
        return doc_id.feed_action

    def _check_encoding(self) -> None:
        if self._encoding_checked:
            return
        try:
            codecs.lookup(self._encoding)
        except LookupError as e:
            raise ConfigurationError(
                f"Unsupported character encoding '{self._encoding}'"
            ) from e
        self._encoding_checked = True
        logger.debug(f"DocIdCodec using encoding {self._encoding} under {self._base_url}")
