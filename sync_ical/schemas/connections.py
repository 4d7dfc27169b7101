from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from sync_ical.models.enums import ChannelType


class CapabilityFlags(BaseModel):
    """
    Declared capabilities of a channel connection. Only calendar_read is used.
    """

    calendar_read: bool = False
    calendar_write: bool = False
    messaging_read: bool = False
    messaging_send: bool = False
    pricing_write: bool = False
    payouts_read: bool = False


class ConnectionCreatePayload(BaseModel):
    """
    Schema for attaching a channel calendar feed to a property.
    """

    property_id: UUID = Field(..., description="Owning property")
    channel: ChannelType = Field(..., description="External booking channel")
    ical_url: Optional[str] = Field(None, description="iCal export URL published by the channel")
    external_listing_id: Optional[str] = Field(None, description="Listing id on the channel")
