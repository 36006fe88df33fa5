from dishka import AsyncContainer, Provider, Scope, from_context, make_async_container

from docfeed.config import Config
from docfeed.infrastructure.feed.di import FeedProvider
from docfeed.infrastructure.gsa.di import GsaProvider
from docfeed.infrastructure.transform.di import TransformProvider


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    config = config or Config()

    return make_async_container(
        ConfigProvider(),
        FeedProvider(),
        GsaProvider(),
        TransformProvider(),
        context={Config: config},
    )
