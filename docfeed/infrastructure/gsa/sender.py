"""HTTP adapter for FeedSender port."""

import logging
from collections.abc import Sequence

import httpx

from docfeed.config import GsaConfig
from docfeed.domain.feed.model import NamedResource, Record
from docfeed.domain.feed.port import FeedSender
from docfeed.domain.shared.error import ExternalServiceError
from docfeed.infrastructure.gsa.feed_file import INCREMENTAL, METADATA_AND_URL, GsaFeedFileMaker

logger = logging.getLogger(__name__)


class HttpFeedSender(FeedSender):
    """Posts feed files to the appliance's xmlfeed endpoint using httpx.

    The appliance answers a well-formed upload with the body "Success".
    Anything else, and any transport error, is raised as ExternalServiceError
    so the push client retries it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: GsaConfig,
        feed_maker: GsaFeedFileMaker,
    ) -> None:
        self._client = client
        self._config = config
        self._feed_maker = feed_maker

    async def send_records(self, records: Sequence[Record]) -> None:
        xml = self._feed_maker.make_metadata_and_url_feed(records)
        await self._post(METADATA_AND_URL, xml, len(records))

    async def send_named_resources(self, resources: Sequence[NamedResource]) -> None:
        xml = self._feed_maker.make_named_resource_feed(resources)
        await self._post(INCREMENTAL, xml, len(resources))

    async def _post(self, feed_type: str, xml: str, count: int) -> None:
        url = self._config.feed_url
        try:
            response = await self._client.post(
                url,
                data={"datasource": self._feed_maker.datasource, "feedtype": feed_type},
                files={"data": ("feed.xml", xml.encode("utf-8"), "text/xml")},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Feed endpoint {url} returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Could not send feed to {url}: {e}") from e

        body = response.text.strip()
        if body != "Success":
            raise ExternalServiceError(f"Feed endpoint {url} rejected feed: {body[:200]!r}")

        logger.debug(f"Sent {feed_type} feed with {count} items to {url}")
