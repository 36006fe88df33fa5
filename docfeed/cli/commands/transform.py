"""Transform command - run the configured pipeline over a file."""

import asyncio
import sys
from io import BytesIO
from pathlib import Path

import cyclopts

from docfeed.cli.console import get_console
from docfeed.config import Config, configure_logging
from docfeed.domain.shared.error import TransformError
from docfeed.infrastructure.transform.command_line import pipeline_from_config

app = cyclopts.App(name="transform", help="Run the transform pipeline over a document")


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Parse ``key=value`` pairs."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        params[key] = value
    return params


@app.default
def transform(
    path: Path,
    *,
    output: Path | None = None,
    metadata: Path | None = None,
    param: list[str] | None = None,
) -> None:
    """Transform a document's content with the configured stages.

    Args:
        path: Document content to transform.
        output: Write content here instead of stdout.
        metadata: Metadata content passed alongside the document.
        param: Parameters as key=value, repeatable.
    """
    console = get_console()
    config = Config()
    configure_logging(config.logging)

    try:
        pipeline = pipeline_from_config(config.transform)
        params = parse_params(param or [])
    except ValueError as e:
        console.error(str(e))
        sys.exit(1)

    try:
        content_in = path.read_bytes()
        metadata_in = metadata.read_bytes() if metadata else b""
    except OSError as e:
        console.error(f"Cannot read input: {e}")
        sys.exit(1)

    content_out = BytesIO()
    metadata_out = BytesIO()
    try:
        asyncio.run(pipeline.transform(content_in, metadata_in, content_out, metadata_out, params))
    except TransformError as e:
        console.error(e.message, hint=f"Check the '{e.stage}' stage in the transform config")
        sys.exit(1)

    if output is None:
        sys.stdout.buffer.write(content_out.getvalue())
        sys.stdout.buffer.flush()
        return

    try:
        output.write_bytes(content_out.getvalue())
    except OSError as e:
        console.error(f"Cannot write output: {e}")
        sys.exit(1)
    console.success(f"Wrote {len(content_out.getvalue()):,} bytes to {output} ({len(pipeline)} stages)")
    if params:
        console.table(
            [{"key": k, "value": v} for k, v in sorted(params.items())],
            [("key", "Parameter"), ("value", "Value")],
        )
