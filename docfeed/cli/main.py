"""Main CLI application using Cyclopts."""

import cyclopts

from docfeed.cli.commands import push, transform, url

app = cyclopts.App(
    name="docfeed",
    help="docfeed - push DocIds to a search appliance and transform document content",
)

app.command(push.app, name="push")
app.command(url.app, name="url")
app.command(transform.app, name="transform")
