"""Search appliance feed infrastructure - feed files, HTTP sender and DI provider.

Import modules directly:
    from docfeed.infrastructure.gsa.di import GsaProvider
    from docfeed.infrastructure.gsa.sender import HttpFeedSender
"""

__all__: list[str] = []
