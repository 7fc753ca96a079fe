"""
Crisp plugin resources.

Covers the connect endpoints a connected plugin uses to validate its
session and enumerate its websites, and the subscription endpoints used
to (un)subscribe websites to plugins and to read or write their settings.

Usage:
    service = PluginService(transport)

    result = await service.list_all_connect_websites(1)
    for website in result.data or []:
        print(website.website_id)

    await service.save_subscription_settings(
        website_id="...",
        plugin_id="...",
        settings={"lang": "en"},
    )

API Reference:
    https://docs.crisp.chat/references/rest-api/v1/
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from crisp_plugin.base import Response, Result, Transport
from crisp_plugin.schemas import (
    ConnectWebsite,
    ConnectWebsiteSince,
    Envelope,
    JSONValue,
    PluginSubscription,
    PluginSubscriptionCreate,
    PluginSubscriptionSettings,
    encode_timestamp_query,
)

logger = logging.getLogger(__name__)


class PluginService:
    """
    Plugin operations, each a single round-trip through the transport.

    Transport errors are raised unchanged. When a response was received
    it is attached to the error as `error.response`.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    # =========================================================================
    # Connect
    # =========================================================================

    async def check_connect_session_validity(self) -> Response:
        """Check whether the connected plugin session is valid."""
        request = self._transport.build_request("HEAD", "plugin/connect/session")
        response, _ = await self._transport.execute(request)
        return response

    async def list_all_connect_websites(self, page_number: int) -> Result[list[ConnectWebsite]]:
        """
        List websites linked to the connected plugin.

        Pages are server-sized; an empty page marks the end of the listing.

        Args:
            page_number: Page to fetch (non-negative)
        """
        if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 0:
            raise ValueError(f"Page number must be a non-negative integer, got {page_number!r}")

        request = self._transport.build_request("GET", f"plugin/connect/websites/all/{page_number:d}")
        response, envelope = await self._transport.execute(request, Envelope[list[ConnectWebsite]])
        return Result(data=_unwrap(envelope), response=response)

    async def list_connect_websites_since(self, date_since: datetime) -> Result[list[ConnectWebsiteSince]]:
        """
        List websites linked, unlinked or updated for the connected plugin
        since the given date.

        Args:
            date_since: Reference instant (naive values are taken as UTC)

        Raises:
            EncodingError: If the date cannot be rendered (no request is made)
        """
        query = encode_timestamp_query(date_since)

        request = self._transport.build_request("GET", f"plugin/connect/websites/since?date_since={query}")
        response, envelope = await self._transport.execute(request, Envelope[list[ConnectWebsiteSince]])
        return Result(data=_unwrap(envelope), response=response)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def list_all_active_subscriptions(self) -> Result[list[PluginSubscription]]:
        """List active subscriptions on all websites linked to the user's payment methods."""
        request = self._transport.build_request("GET", "plugins/subscription")
        response, envelope = await self._transport.execute(request, Envelope[list[PluginSubscription]])
        return Result(data=_unwrap(envelope), response=response)

    async def list_subscriptions_for_website(self, website_id: str) -> Result[PluginSubscription]:
        """List plugin subscriptions for a website."""
        request = self._transport.build_request("GET", f"plugins/subscription/{website_id}")
        response, envelope = await self._transport.execute(request, Envelope[PluginSubscription])
        return Result(data=_unwrap(envelope), response=response)

    async def get_subscription_details(self, website_id: str, plugin_id: str) -> Result[PluginSubscription]:
        """Resolve details on a given subscription."""
        request = self._transport.build_request("GET", f"plugins/subscription/{website_id}/{plugin_id}")
        response, envelope = await self._transport.execute(request, Envelope[PluginSubscription])
        return Result(data=_unwrap(envelope), response=response)

    async def subscribe_website_to_plugin(self, website_id: str, plugin_id: str) -> Response:
        """Subscribe a website to a plugin."""
        body = PluginSubscriptionCreate(plugin_id=plugin_id)

        logger.info(f"[crisp] Subscribing website {website_id} to plugin {plugin_id}")

        request = self._transport.build_request(
            "PATCH",
            f"plugins/subscription/{website_id}",
            body.to_api_dict(),
        )
        response, _ = await self._transport.execute(request)
        return response

    async def unsubscribe_plugin_from_website(self, website_id: str, plugin_id: str) -> Response:
        """Unsubscribe a plugin from a website."""
        logger.info(f"[crisp] Unsubscribing plugin {plugin_id} from website {website_id}")

        request = self._transport.build_request("DELETE", f"plugins/subscription/{website_id}/{plugin_id}")
        response, _ = await self._transport.execute(request)
        return response

    async def get_subscription_settings(
        self,
        website_id: str,
        plugin_id: str,
    ) -> Result[PluginSubscriptionSettings]:
        """Resolve the settings of a plugin on a website."""
        request = self._transport.build_request(
            "GET",
            f"plugins/subscription/{website_id}/{plugin_id}/settings",
        )
        response, envelope = await self._transport.execute(request, Envelope[PluginSubscriptionSettings])
        return Result(data=_unwrap(envelope), response=response)

    async def save_subscription_settings(
        self,
        website_id: str,
        plugin_id: str,
        settings: JSONValue,
    ) -> Response:
        """
        Save the settings of a plugin on a website.

        The settings value is sent as-is; checking it against the plugin's
        schema is left to the API.
        """
        logger.info(f"[crisp] Saving settings of plugin {plugin_id} on website {website_id}")

        request = self._transport.build_request(
            "PATCH",
            f"plugins/subscription/{website_id}/{plugin_id}/settings",
            settings,
        )
        response, _ = await self._transport.execute(request)
        return response


def _unwrap(envelope: Envelope | None) -> Any:
    if envelope is None:
        return None
    return envelope.data
