"""
Pydantic schemas for the Crisp plugin API.

Every field is optional: None means the server did not return it (or the
caller did not provide it), never an empty value standing in for one.
Serialization drops absent fields instead of emitting null.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field

from crisp_plugin.base import EncodingError

T = TypeVar("T")

# Arbitrary JSON tree (object, array or scalar), defined by the server
JSONValue = Any


# =============================================================================
# Base
# =============================================================================


class CrispModel(BaseModel):
    """Common behaviour for Crisp records."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def is_set(self, name: str) -> bool:
        """Whether a field was present (provided or returned) and non-null."""
        return name in self.model_fields_set and getattr(self, name) is not None

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API format, excluding absent values."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def __str__(self) -> str:
        fields = ", ".join(
            f"{name}={value!r}"
            for name, value in self
            if value is not None
        )
        return f"{type(self).__name__}({fields})"


class Envelope(BaseModel, Generic[T]):
    """The single-key wrapper every Crisp list/get response is nested in."""

    model_config = ConfigDict(extra="ignore")

    data: T | None = None


# =============================================================================
# Connect
# =============================================================================


class ConnectWebsite(CrispModel):
    """A website linked to the connected plugin."""

    website_id: str | None = None
    settings: JSONValue | None = None


class ConnectWebsiteSince(CrispModel):
    """A website linked, unlinked or updated since a given date."""

    website_id: str | None = None
    settings: JSONValue | None = None
    # Opaque change indicator, e.g. "added", "removed", "updated"
    difference: str | None = None


# =============================================================================
# Subscriptions
# =============================================================================


class PluginSubscription(CrispModel):
    """A website's subscription to a plugin."""

    id: str | None = None
    urn: str | None = None
    type: str | None = None
    name: str | None = None
    description: str | None = None
    features: list[str] | None = None
    showcase: list[str] | None = None
    price: int | None = Field(None, ge=0, description="Price, in account currency units")
    color: str | None = None
    icon: str | None = None
    banner: str | None = None
    since: str | None = None
    active: bool | None = None
    website_id: str | None = None
    card_id: str | None = None


class PluginSubscriptionCreate(CrispModel):
    """Body of a subscribe request."""

    plugin_id: str | None = None


class PluginSubscriptionSettings(CrispModel):
    """Settings of a plugin on a website, along with their schema."""

    plugin_id: str | None = None
    website_id: str | None = None
    settings_schema: JSONValue | None = Field(None, alias="schema")
    settings: JSONValue | None = None


# =============================================================================
# Timestamps
# =============================================================================


def format_timestamp(value: datetime) -> str:
    """
    Render an instant as RFC 3339 text in UTC.

    The fraction is emitted only when non-zero, with trailing zeros
    trimmed. Naive datetimes are taken as UTC.

    Raises:
        EncodingError: If the value cannot be rendered
    """
    if not isinstance(value, datetime):
        raise EncodingError(f"Cannot encode {type(value).__name__} as a timestamp")

    try:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
    except (OverflowError, ValueError) as e:
        raise EncodingError(f"Cannot encode timestamp {value!r}: {e}") from e

    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_timestamp(text: str) -> datetime:
    """Parse text produced by format_timestamp back into an aware datetime."""
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def encode_timestamp_query(value: datetime) -> str:
    """Render an instant for use as a query string value."""
    return quote_plus(format_timestamp(value))
