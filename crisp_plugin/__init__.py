"""
crisp-plugin - Async client for the Crisp REST API plugin resources.

Covers:
- Connect session validation
- Website enumeration for a connected plugin (paged and delta)
- Plugin subscriptions and their settings

Usage:
    from crisp_plugin import ClientConfig, CrispClient

    async with CrispClient(ClientConfig(identifier="...", key="...")) as client:
        result = await client.plugin.list_all_connect_websites(1)
        for website in result.data or []:
            print(website.website_id)

API Reference:
    https://docs.crisp.chat/references/rest-api/v1/
"""

__version__ = "0.1.0"
__license__ = "MIT"

from crisp_plugin.base import (
    AuthenticationError,
    ClientConfig,
    CrispError,
    DecodeError,
    EncodingError,
    HttpTransport,
    NotFoundError,
    RateLimitError,
    Request,
    Response,
    Result,
    Transport,
    TransportError,
    ValidationError,
)
from crisp_plugin.client import CrispClient
from crisp_plugin.plugin import PluginService
from crisp_plugin.schemas import (
    ConnectWebsite,
    ConnectWebsiteSince,
    Envelope,
    PluginSubscription,
    PluginSubscriptionCreate,
    PluginSubscriptionSettings,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    "__version__",
    "__license__",
    # Client
    "CrispClient",
    "PluginService",
    # Transport
    "ClientConfig",
    "HttpTransport",
    "Request",
    "Response",
    "Result",
    "Transport",
    # Errors
    "AuthenticationError",
    "CrispError",
    "DecodeError",
    "EncodingError",
    "NotFoundError",
    "RateLimitError",
    "TransportError",
    "ValidationError",
    # Schemas
    "ConnectWebsite",
    "ConnectWebsiteSince",
    "Envelope",
    "PluginSubscription",
    "PluginSubscriptionCreate",
    "PluginSubscriptionSettings",
    "format_timestamp",
    "parse_timestamp",
]
