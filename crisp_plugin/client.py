"""
Crisp API client.

Owns the shared transport and exposes the plugin resources on top of it.

Usage:
    async with CrispClient(ClientConfig(identifier="...", key="...")) as client:
        if await client.health_check():
            result = await client.plugin.list_all_active_subscriptions()
"""

from __future__ import annotations

import logging

from crisp_plugin.base import ClientConfig, CrispError, HttpTransport, Transport
from crisp_plugin.plugin import PluginService

logger = logging.getLogger(__name__)


class CrispClient:
    """
    Async client for the Crisp REST API plugin resources.

    Either a configuration (an HttpTransport is created from it) or a
    ready transport must be given.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
    ):
        if transport is None:
            if config is None:
                raise ValueError("Either a config or a transport is required")
            transport = HttpTransport(config)

        self._transport = transport
        self.plugin = PluginService(transport)

    @classmethod
    def from_env(cls) -> CrispClient:
        """Create a client configured from CRISP_* environment variables."""
        return cls(ClientConfig.from_env())

    @property
    def transport(self) -> Transport:
        return self._transport

    async def health_check(self) -> bool:
        """
        Check whether the connected plugin session is valid.

        Returns:
            True if the session check succeeded
        """
        try:
            await self.plugin.check_connect_session_validity()
            return True
        except CrispError as e:
            logger.warning(f"[crisp] Health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close the underlying transport, if it can be closed."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> CrispClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
