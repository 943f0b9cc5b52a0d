"""
Color values for entertainment streaming.

Each color knows its color-space tag and how many bytes it occupies in a
frame, and appends its big-endian encoding to an output buffer. Only RGB is
implemented; other color spaces subclass HueColor with their own fixed width.
"""
from __future__ import annotations

import re
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum

from huestream.exceptions import ValidationError

_MAX_16BIT = 0xFFFF
_MAX_8BIT = 0xFF
_RGB_STRUCT = struct.Struct(">HHH")
_HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


class ColorSpace(IntEnum):
    """Color-space tags understood by the streaming protocol"""

    RGB = 0x00
    XY_BRIGHTNESS = 0x01


class HueColor(ABC):
    """A color value that can serialize itself into a fixed-width field."""

    color_space: ColorSpace
    encoded_size: int

    @abstractmethod
    def serialize_to(self, buffer: bytearray) -> None:
        """Append the encoded color to buffer."""
        pass

    def to_bytes(self) -> bytes:
        buffer = bytearray()
        self.serialize_to(buffer)
        return bytes(buffer)


def _validate_16bit(value: int, channel: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"Invalid value {value!r} for color {channel}; must be an integer",
            details={"channel": channel, "value": value},
        )
    if value < 0 or value > _MAX_16BIT:
        raise ValidationError(
            f"Invalid value {value} for color {channel}; must be between 0 and 65535, inclusive",
            details={"channel": channel, "value": value},
        )
    return value


def _validate_8bit(value: int, channel: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0 or value > _MAX_8BIT:
        raise ValidationError(
            f"Invalid value {value!r} for 8-bit color {channel}; must be between 0 and 255, inclusive",
            details={"channel": channel, "value": value},
        )
    return value


@dataclass(frozen=True)
class Rgb(HueColor):
    """RGB color with 16-bit channel intensities."""

    red: int
    green: int
    blue: int

    color_space = ColorSpace.RGB
    encoded_size = _RGB_STRUCT.size

    def __post_init__(self) -> None:
        _validate_16bit(self.red, "red")
        _validate_16bit(self.green, "green")
        _validate_16bit(self.blue, "blue")

    @classmethod
    def from_8bit(cls, red: int, green: int, blue: int) -> "Rgb":
        """
        Build from 8-bit components (0-255).

        Each component is shifted left by 8, so 255 maps to 0xFF00.
        """
        return cls(
            _validate_8bit(red, "red") << 8,
            _validate_8bit(green, "green") << 8,
            _validate_8bit(blue, "blue") << 8,
        )

    @classmethod
    def from_hex(cls, value: str) -> "Rgb":
        """Parse an ``RRGGBB`` or ``#RRGGBB`` string."""
        match = _HEX_COLOR_RE.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValidationError(
                f"Invalid hex color {value!r}; expected RRGGBB or #RRGGBB",
                details={"value": value},
            )
        digits = match.group(1)
        return cls.from_8bit(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Rgb":
        if len(data) != _RGB_STRUCT.size:
            raise ValidationError(
                f"RGB field must be {_RGB_STRUCT.size} bytes, got {len(data)}",
                details={"size": len(data)},
            )
        return cls(*_RGB_STRUCT.unpack(data))

    def serialize_to(self, buffer: bytearray) -> None:
        buffer.extend(_RGB_STRUCT.pack(self.red, self.green, self.blue))


BLACK = Rgb.from_8bit(0, 0, 0)
WHITE = Rgb.from_8bit(255, 255, 255)
GRAY = Rgb.from_8bit(128, 128, 128)
RED = Rgb.from_8bit(255, 0, 0)
GREEN = Rgb.from_8bit(0, 255, 0)
BLUE = Rgb.from_8bit(0, 0, 255)
