"""
huestream - synchronous Hue Entertainment streaming client

Arms an entertainment area over the bridge's REST API and streams
HueStream v2 frames to it over PSK-DTLS.
"""
from huestream.client import HueEntertainmentClient
from huestream.engine.colors import BLACK, BLUE, GRAY, GREEN, RED, WHITE, ColorSpace, HueColor, Rgb
from huestream.engine.frame import Light
from huestream.exceptions import (
    ControlCancelledError,
    ControlError,
    HandshakeError,
    HueStreamError,
    SendError,
    StateError,
    TransportError,
    ValidationError,
)
from huestream.models import SessionState, StreamConfig

__version__ = "0.1.0"

__all__ = [
    "HueEntertainmentClient",
    "StreamConfig",
    "SessionState",
    "Light",
    "HueColor",
    "Rgb",
    "ColorSpace",
    "BLACK",
    "WHITE",
    "GRAY",
    "RED",
    "GREEN",
    "BLUE",
    "HueStreamError",
    "ValidationError",
    "ControlError",
    "ControlCancelledError",
    "TransportError",
    "HandshakeError",
    "SendError",
    "StateError",
]
