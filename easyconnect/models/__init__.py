"""
Data models for easyconnect.

This package contains Pydantic models for:

- Link configuration (Framing, LinkSettings)
- Event payloads raised by a SerialConnection
"""

from easyconnect.models.events import (
    ConnectedEvent,
    DataReceivedEvent,
    DisconnectedEvent,
    ErrorEvent,
    PinChangedEvent,
)
from easyconnect.models.settings import DEFAULT_FRAMING, Framing, LinkSettings

__all__ = [
    # Settings
    "Framing",
    "LinkSettings",
    "DEFAULT_FRAMING",
    # Events
    "ConnectedEvent",
    "DisconnectedEvent",
    "DataReceivedEvent",
    "PinChangedEvent",
    "ErrorEvent",
]
