"""Feed domain ports."""

from docfeed.domain.feed.port.feed_sender import FeedItem, FeedSender
from docfeed.domain.feed.port.pusher import DocIdPusher, PushCancelledError

__all__ = ["DocIdPusher", "FeedItem", "FeedSender", "PushCancelledError"]
