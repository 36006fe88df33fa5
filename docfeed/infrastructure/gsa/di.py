"""DI provider for the search appliance feed endpoint."""

from typing import AsyncIterable, NewType

import httpx
from dishka import Provider, Scope, provide

from docfeed.config import Config
from docfeed.domain.feed.codec import DocIdCodec
from docfeed.domain.feed.port import FeedSender
from docfeed.infrastructure.gsa.feed_file import GsaFeedFileMaker
from docfeed.infrastructure.gsa.sender import HttpFeedSender

FeedHttpClient = NewType("FeedHttpClient", httpx.AsyncClient)


class GsaProvider(Provider):
    """Provides the HTTP feed sender and the feed file maker."""

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Config) -> AsyncIterable[FeedHttpClient]:
        client = httpx.AsyncClient(timeout=config.gsa.timeout)
        yield FeedHttpClient(client)
        await client.aclose()

    @provide(scope=Scope.APP)
    def get_feed_maker(self, codec: DocIdCodec, config: Config) -> GsaFeedFileMaker:
        return GsaFeedFileMaker(codec=codec, datasource=config.feed.datasource)

    @provide(scope=Scope.APP, provides=FeedSender)
    def get_feed_sender(
        self,
        client: FeedHttpClient,
        config: Config,
        feed_maker: GsaFeedFileMaker,
    ) -> HttpFeedSender:
        return HttpFeedSender(client=client, config=config.gsa, feed_maker=feed_maker)
