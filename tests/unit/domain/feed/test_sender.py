"""Unit tests for DocIdSender batching, retry and cancellation behavior."""

import asyncio
from collections.abc import Sequence
from datetime import timedelta

import pytest

from docfeed.domain.feed.backoff import BackoffHandler, NoRetryHandler
from docfeed.domain.feed.model import Acl, DocId, NamedResource, Record
from docfeed.domain.feed.port import PushCancelledError
from docfeed.domain.feed.service.sender import DocIdSender
from docfeed.domain.shared.error import ConfigurationError, ExternalServiceError


class FakeFeedSender:
    """FeedSender that fails for chosen DocIds and records every attempt.

    Args:
        failing: unique ids whose feeds always fail.
        transient: unique id -> number of attempts that fail before succeeding.
    """

    def __init__(
        self,
        failing: set[str] | None = None,
        transient: dict[str, int] | None = None,
    ) -> None:
        self.failing = failing or set()
        self.transient = dict(transient or {})
        self.attempts: list[list[str]] = []
        self.delivered: list[str] = []

    async def send_records(self, records: Sequence[Record]) -> None:
        await self._send([r.doc_id.unique_id for r in records])

    async def send_named_resources(self, resources: Sequence[NamedResource]) -> None:
        await self._send([r.doc_id.unique_id for r in resources])

    async def _send(self, ids: list[str]) -> None:
        self.attempts.append(ids)
        if self.failing.intersection(ids):
            raise ExternalServiceError(f"rejected {ids}")
        for unique_id in ids:
            if self.transient.get(unique_id, 0) > 0:
                self.transient[unique_id] -= 1
                raise ExternalServiceError(f"temporarily rejected {ids}")
        self.delivered.extend(ids)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class CountingHandler:
    """Delegates to another handler and counts decisions."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.calls: list[int] = []

    async def handle_exception(self, ex: Exception, ntries: int) -> bool:
        self.calls.append(ntries)
        return await self.inner.handle_exception(ex, ntries)


def records(*ids: str) -> list[Record]:
    return [Record(doc_id=DocId(i)) for i in ids]


def fast_handler(max_tries: int = 3) -> tuple[BackoffHandler, RecordingSleep]:
    sleep = RecordingSleep()
    return BackoffHandler(max_tries=max_tries, initial_sleep=timedelta(seconds=5), sleep=sleep), sleep


class TestPushRecords:
    @pytest.mark.asyncio
    async def test_success_returns_none(self):
        feed_sender = FakeFeedSender()
        sender = DocIdSender(feed_sender, handler=NoRetryHandler())

        result = await sender.push_records(records("a", "b", "c"))

        assert result is None
        assert feed_sender.delivered == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_batches_by_max_feed_size(self):
        feed_sender = FakeFeedSender()
        sender = DocIdSender(feed_sender, max_feed_size=2, handler=NoRetryHandler())

        await sender.push_records(records("a", "b", "c", "d", "e"))

        assert feed_sender.attempts == [["a", "b"], ["c", "d"], ["e"]]

    @pytest.mark.asyncio
    async def test_empty_push_sends_nothing(self):
        feed_sender = FakeFeedSender()
        sender = DocIdSender(feed_sender, handler=NoRetryHandler())

        assert await sender.push_records([]) is None
        assert feed_sender.attempts == []

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        feed_sender = FakeFeedSender(transient={"b": 2})
        handler, sleep = fast_handler()
        sender = DocIdSender(feed_sender, max_feed_size=1, handler=handler)

        result = await sender.push_records(records("a", "b", "c"))

        assert result is None
        assert feed_sender.delivered == ["a", "b", "c"]
        assert sleep.delays == [5.0, 10.0]

    @pytest.mark.asyncio
    async def test_returns_first_failing_record_and_aborts(self):
        feed_sender = FakeFeedSender(failing={"b"})
        sender = DocIdSender(feed_sender, max_feed_size=1, handler=NoRetryHandler())
        pushed = records("a", "b", "c")

        result = await sender.push_records(pushed)

        assert result == pushed[1]
        assert feed_sender.delivered == ["a"]
        assert ["c"] not in feed_sender.attempts

    @pytest.mark.asyncio
    async def test_failing_batch_reports_its_first_item(self):
        feed_sender = FakeFeedSender(failing={"d"})
        sender = DocIdSender(feed_sender, max_feed_size=2, handler=NoRetryHandler())
        pushed = records("a", "b", "c", "d")

        result = await sender.push_records(pushed)

        assert result == pushed[2]

    @pytest.mark.asyncio
    async def test_non_transient_error_propagates(self):
        class BrokenSender(FakeFeedSender):
            async def send_records(self, records):
                raise ConfigurationError("bad encoding")

        handler = CountingHandler(NoRetryHandler())
        sender = DocIdSender(BrokenSender(), handler=handler)

        with pytest.raises(ConfigurationError):
            await sender.push_records(records("a"))
        assert handler.calls == []

    def test_max_feed_size_must_be_positive(self):
        with pytest.raises(ValueError):
            DocIdSender(FakeFeedSender(), max_feed_size=0)


class TestBackoffTermination:
    @pytest.mark.asyncio
    async def test_always_failing_push_exhausts_policy(self):
        feed_sender = FakeFeedSender(failing={"a"})
        inner, sleep = fast_handler(max_tries=4)
        handler = CountingHandler(inner)
        sender = DocIdSender(feed_sender, handler=handler)
        pushed = records("a")

        result = await sender.push_records(pushed)

        assert result == pushed[0]
        # Four retries that sleep, then one decision that gives up
        assert handler.calls == [1, 2, 3, 4, 5]
        assert len(feed_sender.attempts) == 5
        assert sum(sleep.delays) == 5.0 * (1 + 2 + 3 + 4)


class TestDefaultHandlerSubstitution:
    @pytest.mark.asyncio
    async def test_none_handler_behaves_like_omitted_handler(self):
        outcomes = []
        for explicit_none in (False, True):
            handler, sleep = fast_handler(max_tries=2)
            feed_sender = FakeFeedSender(transient={"b": 1}, failing={"c"})
            sender = DocIdSender(feed_sender, max_feed_size=1, handler=handler)
            pushed = records("a", "b", "c")

            if explicit_none:
                result = await sender.push_records(pushed, None)
            else:
                result = await sender.push_records(pushed)
            outcomes.append((result, sleep.delays, feed_sender.attempts))

        assert outcomes[0] == outcomes[1]
        assert outcomes[0][0].doc_id == DocId("c")

    @pytest.mark.asyncio
    async def test_explicit_handler_overrides_default(self):
        default, default_sleep = fast_handler()
        sender = DocIdSender(FakeFeedSender(failing={"a"}), handler=default)

        result = await sender.push_records(records("a"), NoRetryHandler())

        assert result.doc_id == DocId("a")
        assert default_sleep.delays == []


class TestPushDocIds:
    @pytest.mark.asyncio
    async def test_pushes_default_records(self):
        feed_sender = FakeFeedSender()
        sent: list[Record] = []

        async def capture(batch):
            sent.extend(batch)

        feed_sender.send_records = capture
        sender = DocIdSender(feed_sender, handler=NoRetryHandler())

        result = await sender.push_doc_ids([DocId("a"), DocId("b")])

        assert result is None
        assert sent == records("a", "b")

    @pytest.mark.asyncio
    async def test_returns_failing_doc_id(self):
        sender = DocIdSender(
            FakeFeedSender(failing={"b"}), max_feed_size=1, handler=NoRetryHandler()
        )

        assert await sender.push_doc_ids([DocId("a"), DocId("b")]) == DocId("b")


class TestPushNamedResources:
    @pytest.mark.asyncio
    async def test_reports_failing_resource_in_mapping_order(self):
        feed_sender = FakeFeedSender(failing={"second"})
        sender = DocIdSender(feed_sender, max_feed_size=1, handler=NoRetryHandler())
        resources = {
            DocId("first"): Acl(permit_users=frozenset({"alice"})),
            DocId("second"): Acl(permit_groups=frozenset({"staff"})),
            DocId("third"): Acl(),
        }

        result = await sender.push_named_resources(resources)

        assert result == DocId("second")
        assert feed_sender.delivered == ["first"]

    @pytest.mark.asyncio
    async def test_success_returns_none(self):
        feed_sender = FakeFeedSender()
        sender = DocIdSender(feed_sender, handler=NoRetryHandler())

        assert await sender.push_named_resources({DocId("a"): Acl()}) is None
        assert feed_sender.delivered == ["a"]


class TestCancellation:
    @staticmethod
    def blocking_handler() -> tuple[BackoffHandler, asyncio.Event]:
        started = asyncio.Event()

        async def sleep_forever(delay: float) -> None:
            started.set()
            await asyncio.Event().wait()

        handler = BackoffHandler(
            max_tries=5, initial_sleep=timedelta(seconds=1), sleep=sleep_forever
        )
        return handler, started

    @pytest.mark.asyncio
    async def test_cancel_before_anything_sent_propagates(self):
        handler, started = self.blocking_handler()
        sender = DocIdSender(FakeFeedSender(failing={"a"}), max_feed_size=1, handler=handler)
        task = asyncio.create_task(sender.push_records(records("a", "b")))
        await started.wait()

        task.cancel()

        with pytest.raises(asyncio.CancelledError) as exc_info:
            await task
        assert not isinstance(exc_info.value, PushCancelledError)

    @pytest.mark.asyncio
    async def test_cancel_after_partial_progress_reports_first_unsent(self):
        handler, started = self.blocking_handler()
        feed_sender = FakeFeedSender(failing={"b"})
        sender = DocIdSender(feed_sender, max_feed_size=1, handler=handler)
        pushed = records("a", "b", "c")
        task = asyncio.create_task(sender.push_records(pushed))
        await started.wait()

        task.cancel()

        with pytest.raises(PushCancelledError) as exc_info:
            await task
        assert exc_info.value.first_unsent == pushed[1]
        assert task.cancelled()
        assert feed_sender.delivered == ["a"]

    @pytest.mark.asyncio
    async def test_partial_progress_is_a_cancellation_for_the_caller(self):
        handler, started = self.blocking_handler()
        sender = DocIdSender(FakeFeedSender(failing={"b"}), max_feed_size=1, handler=handler)
        caught: list[PushCancelledError] = []

        async def push_and_catch() -> None:
            try:
                await sender.push_records(records("a", "b"))
            except PushCancelledError as e:
                caught.append(e)
                raise

        task = asyncio.create_task(push_and_catch())
        await started.wait()

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert [e.first_unsent.doc_id for e in caught] == [DocId("b")]

    @pytest.mark.asyncio
    async def test_push_doc_ids_reports_first_unsent_doc_id(self):
        handler, started = self.blocking_handler()
        sender = DocIdSender(FakeFeedSender(failing={"b"}), max_feed_size=1, handler=handler)
        task = asyncio.create_task(sender.push_doc_ids([DocId("a"), DocId("b"), DocId("c")]))
        await started.wait()

        task.cancel()

        with pytest.raises(PushCancelledError) as exc_info:
            await task
        assert exc_info.value.first_unsent == DocId("b")

    @pytest.mark.asyncio
    async def test_push_named_resources_reports_first_unsent_doc_id(self):
        handler, started = self.blocking_handler()
        sender = DocIdSender(FakeFeedSender(failing={"b"}), max_feed_size=1, handler=handler)
        task = asyncio.create_task(
            sender.push_named_resources({DocId("a"): Acl(), DocId("b"): Acl()})
        )
        await started.wait()

        task.cancel()

        with pytest.raises(PushCancelledError) as exc_info:
            await task
        assert exc_info.value.first_unsent == DocId("b")
