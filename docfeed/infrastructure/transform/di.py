from dishka import Provider, Scope, provide

from docfeed.config import Config
from docfeed.domain.transform.pipeline import TransformPipeline
from docfeed.infrastructure.transform.command_line import pipeline_from_config


class TransformProvider(Provider):
    @provide(scope=Scope.APP)
    def get_pipeline(self, config: Config) -> TransformPipeline:
        return pipeline_from_config(config.transform)
