"""docfeed - push DocIds to a search appliance and transform document content."""

__version__ = "0.1.0"
