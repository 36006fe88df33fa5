"""Push command - announce DocIds to the search appliance."""

import asyncio
import sys

import cyclopts

from docfeed.application.di import create_container
from docfeed.cli.console import get_console
from docfeed.config import Config, configure_logging
from docfeed.domain.feed.codec import DocIdCodec
from docfeed.domain.feed.model import DocId, Record, RecordBuilder
from docfeed.domain.feed.port import DocIdPusher
from docfeed.domain.shared.error import DocFeedError
from docfeed.infrastructure.feed.accumulating import AccumulatingDocIdPusher

app = cyclopts.App(name="push", help="Push DocIds to the search appliance")


def build_records(
    doc_ids: tuple[str, ...],
    *,
    delete: bool = False,
    crawl_immediately: bool = False,
    lock: bool = False,
) -> list[Record]:
    """One Record per unique id, all sharing the given flags."""
    records = []
    for unique_id in doc_ids:
        builder = (
            RecordBuilder(DocId(unique_id))
            .set_delete_from_index(delete)
            .set_crawl_immediately(crawl_immediately)
            .set_lock(lock)
        )
        records.append(builder.build())
    return records


async def _push(records: list[Record], config: Config) -> Record | None:
    container = create_container(config)
    try:
        pusher = await container.get(DocIdPusher)
        return await pusher.push_records(records)
    finally:
        await container.close()


@app.default
def push(
    *doc_ids: str,
    delete: bool = False,
    crawl_immediately: bool = False,
    lock: bool = False,
    dry_run: bool = False,
) -> None:
    """Push DocIds, blocking until sent or the retry policy gives up.

    Args:
        doc_ids: Unique ids of the documents.
        delete: Tell the appliance the documents were deleted.
        crawl_immediately: Ask for a high-priority recrawl.
        lock: Lock the documents into the index.
        dry_run: Show the feed URLs without contacting the appliance.
    """
    console = get_console()
    config = Config()
    configure_logging(config.logging)

    if not doc_ids:
        console.error("No DocIds given")
        sys.exit(1)

    try:
        records = build_records(
            doc_ids, delete=delete, crawl_immediately=crawl_immediately, lock=lock
        )
        if dry_run:
            pusher = AccumulatingDocIdPusher()
            asyncio.run(pusher.push_records(records))
            codec = DocIdCodec.from_config(config.feed, config.gsa)
            rows = [
                {
                    "id": d.unique_id,
                    "url": codec.encode(d),
                    "action": "delete" if delete else codec.action(d),
                }
                for d in pusher.doc_ids
            ]
            console.table(
                rows,
                [("id", "DocId"), ("url", "Feed URL"), ("action", "Action")],
                title="Dry run",
            )
            return

        with console.status(f"Pushing {len(records)} records to {config.gsa.feed_url}..."):
            failed = asyncio.run(_push(records, config))
    except DocFeedError as e:
        console.error(e.message)
        sys.exit(1)

    if failed is not None:
        console.error(
            f"Push failed at {failed.doc_id.unique_id}",
            hint="Records before it were delivered; re-run from this DocId.",
        )
        sys.exit(1)

    console.success(f"Pushed {len(records)} record{'s' if len(records) != 1 else ''}")
