"""URL commands - convert between DocIds and feed URLs."""

import sys

import cyclopts

from docfeed.cli.console import get_console
from docfeed.config import Config
from docfeed.domain.feed.codec import DocIdCodec
from docfeed.domain.feed.model import DocId
from docfeed.domain.shared.error import DocFeedError

app = cyclopts.App(name="url", help="Convert between DocIds and feed URLs")


def _codec() -> DocIdCodec:
    config = Config()
    return DocIdCodec.from_config(config.feed, config.gsa)


@app.command
def encode(unique_id: str) -> None:
    """Print the feed URL for a DocId."""
    console = get_console()
    try:
        console.print(_codec().encode(DocId(unique_id)), markup=False, highlight=False)
    except DocFeedError as e:
        console.error(e.message)
        sys.exit(1)


@app.command
def decode(url: str) -> None:
    """Print the DocId a feed URL was made from."""
    console = get_console()
    try:
        console.print(_codec().decode(url), markup=False, highlight=False)
    except DocFeedError as e:
        console.error(e.message)
        sys.exit(1)
