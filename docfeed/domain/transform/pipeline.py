"""TransformPipeline - ordered chain of document content transforms."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from io import BytesIO
from typing import BinaryIO

import logfire

from docfeed.domain.shared.error import TransformError

logger = logging.getLogger(__name__)


class DocumentTransform(ABC):
    """One stage of a TransformPipeline.

    A stage reads the document content and its metadata content, writes the
    transformed versions to the output streams, and may rewrite the shared
    parameter dictionary in place.
    """

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    async def transform(
        self,
        content_in: bytes,
        metadata_in: bytes,
        content_out: BinaryIO,
        metadata_out: BinaryIO,
        params: dict[str, str],
    ) -> None: ...


class TransformPipeline:
    """Applies stages in order; stage i's output is stage i+1's input.

    The caller's output streams and ``params`` are only written once every
    stage has succeeded. The first failing stage raises TransformError naming
    it, and later stages are not run. Nothing is retried.

    The pipeline keeps no per-document state, so one instance can transform
    several documents concurrently.
    """

    def __init__(self, stages: Iterable[DocumentTransform] = ()) -> None:
        self._stages: list[DocumentTransform] = list(stages)

    def add(self, stage: DocumentTransform) -> "TransformPipeline":
        self._stages.append(stage)
        return self

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[DocumentTransform]:
        return iter(self._stages)

    async def transform(
        self,
        content_in: bytes,
        metadata_in: bytes,
        content_out: BinaryIO,
        metadata_out: BinaryIO,
        params: dict[str, str],
    ) -> None:
        content = content_in
        metadata = metadata_in
        working = dict(params)

        for stage in self._stages:
            stage_content = BytesIO()
            stage_metadata = BytesIO()
            with logfire.span("Transform stage {stage}", stage=stage.name):
                try:
                    await stage.transform(content, metadata, stage_content, stage_metadata, working)
                except TransformError as e:
                    if e.stage == stage.name:
                        raise
                    raise TransformError(stage.name, e.message) from e
                except Exception as e:
                    logger.error(f"Transform stage '{stage.name}' failed: {e}")
                    raise TransformError(stage.name, str(e)) from e
            _check_params(stage.name, working)
            content = stage_content.getvalue()
            metadata = stage_metadata.getvalue()

        content_out.write(content)
        metadata_out.write(metadata)
        params.clear()
        params.update(working)


def _check_params(stage: str, params: dict[str, str]) -> None:
    for key, value in params.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TransformError(stage, f"parameter {key!r} is not a string mapping")
