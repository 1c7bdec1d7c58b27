from .backend_client import BackendClient
from .chat_provider import ChatProvider, ToolHandler
from .rate_limit_store import RateLimitStore
from .web_search_client import WebSearchClient

__all__ = [
    "BackendClient",
    "ChatProvider",
    "ToolHandler",
    "RateLimitStore",
    "WebSearchClient",
]
