"""DI provider for DocId encoding and pushing."""

from dishka import Provider, Scope, provide

from docfeed.config import Config
from docfeed.domain.feed.backoff import ExceptionHandler, handler_from_config
from docfeed.domain.feed.codec import DocIdCodec
from docfeed.domain.feed.port import DocIdPusher, FeedSender
from docfeed.domain.feed.service.sender import DocIdSender


class FeedProvider(Provider):
    """Provides the codec, the default retry policy, and the push client."""

    @provide(scope=Scope.APP)
    def get_codec(self, config: Config) -> DocIdCodec:
        return DocIdCodec.from_config(config.feed, config.gsa)

    @provide(scope=Scope.APP)
    def get_exception_handler(self, config: Config) -> ExceptionHandler:
        return handler_from_config(config.backoff)

    @provide(scope=Scope.APP, provides=DocIdPusher)
    def get_pusher(
        self,
        feed_sender: FeedSender,
        handler: ExceptionHandler,
        config: Config,
    ) -> DocIdSender:
        return DocIdSender(
            feed_sender=feed_sender,
            max_feed_size=config.feed.max_feed_size,
            handler=handler,
        )
