"""
HueStream frame encoding.

A frame is one datagram carrying the target color of every referenced
channel. Layout (big-endian):

    0   9   protocol name "HueStream"
    9   1   major version (0x02)
    10  1   minor version (0x00)
    11  1   sequence number (unused, 0)
    12  2   reserved (0)
    14  1   color space
    15  1   reserved (0)
    16  36  entertainment area id
    52  7*N [channel byte][6 color bytes] per light, in caller order

Channels are neither reordered nor deduplicated; a repeated channel occupies
its own slot and the bridge decides what to do with it.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import List, Sequence

from huestream.engine.colors import ColorSpace, HueColor, Rgb
from huestream.exceptions import ValidationError

PROTOCOL_NAME = b"HueStream"
VERSION_MAJOR = 0x02
VERSION_MINOR = 0x00
AREA_ID_SIZE = 36
MAX_CHANNEL = 0xFF

_HEADER = struct.Struct(">9sBBBHBB")
HEADER_SIZE = _HEADER.size + AREA_ID_SIZE
LIGHT_SIZE = 1 + Rgb.encoded_size


@dataclass(frozen=True)
class Light:
    """Target color for one entertainment channel."""

    channel: int
    color: HueColor

    def __post_init__(self) -> None:
        if not isinstance(self.channel, int) or isinstance(self.channel, bool):
            raise ValidationError(
                f"Invalid channel {self.channel!r}; must be an integer",
                details={"channel": self.channel},
            )
        if self.channel < 0 or self.channel > MAX_CHANNEL:
            raise ValidationError(
                f"Invalid channel {self.channel}; must be between 0 and 255, inclusive",
                details={"channel": self.channel},
            )
        if not isinstance(self.color, HueColor):
            raise ValidationError(
                f"Invalid color {self.color!r} for channel {self.channel}",
                details={"channel": self.channel},
            )

    def serialize_to(self, buffer: bytearray) -> None:
        buffer.append(self.channel)
        self.color.serialize_to(buffer)


@dataclass(frozen=True)
class StreamFrame:
    """Decoded view of a frame, used for diagnostics."""

    color_space: int
    entertainment_area: bytes
    lights: List[Light] = field(default_factory=list)
    version: tuple = (VERSION_MAJOR, VERSION_MINOR)
    sequence: int = 0


def validate_entertainment_area(entertainment_area: str) -> bytes:
    """Encode an entertainment area id, requiring exactly 36 UTF-8 bytes."""
    encoded = entertainment_area.encode("utf-8")
    if len(encoded) != AREA_ID_SIZE:
        raise ValidationError(
            f"Invalid value {entertainment_area} for entertainment area ID; "
            f"must be exactly {AREA_ID_SIZE} bytes long",
            details={"size": len(encoded)},
        )
    return encoded


def frame_size(light_count: int) -> int:
    return HEADER_SIZE + LIGHT_SIZE * light_count


def serialize_stream_command(
    color_space: int,
    entertainment_area: bytes,
    lights: Sequence[Light],
) -> bytes:
    """
    Build the datagram for one streaming update.

    Args:
        color_space: Color-space tag written at offset 14
        entertainment_area: 36 raw bytes of the area id
        lights: Channel assignments, written in the given order

    Returns:
        Frame bytes, 52 + 7 * len(lights) long for RGB colors
    """
    if not 0 <= color_space <= 0xFF:
        raise ValidationError(
            f"Invalid value {color_space} for color space; must be between 0 and 255, inclusive",
            details={"color_space": color_space},
        )
    if len(entertainment_area) != AREA_ID_SIZE:
        raise ValidationError(
            f"Entertainment area ID must be exactly {AREA_ID_SIZE} bytes, got {len(entertainment_area)}",
            details={"size": len(entertainment_area)},
        )

    result = bytearray(
        _HEADER.pack(PROTOCOL_NAME, VERSION_MAJOR, VERSION_MINOR, 0, 0, color_space, 0)
    )
    result.extend(entertainment_area)

    for light in lights:
        light.serialize_to(result)

    return bytes(result)


def parse_stream_command(data: bytes) -> StreamFrame:
    """Decode a frame produced by serialize_stream_command (RGB only)."""
    if len(data) < HEADER_SIZE:
        raise ValidationError(
            f"Frame too short: {len(data)} bytes",
            details={"size": len(data)},
        )

    name, major, minor, sequence, _, color_space, _ = _HEADER.unpack_from(data)
    if name != PROTOCOL_NAME:
        raise ValidationError(f"Bad protocol name {name!r}", details={"name": name})
    if color_space != ColorSpace.RGB:
        raise ValidationError(
            f"Unsupported color space {color_space}",
            details={"color_space": color_space},
        )

    body = data[HEADER_SIZE:]
    if len(body) % LIGHT_SIZE:
        raise ValidationError(
            f"Frame body of {len(body)} bytes is not a whole number of lights",
            details={"size": len(data)},
        )

    lights = [
        Light(body[offset], Rgb.from_bytes(body[offset + 1:offset + LIGHT_SIZE]))
        for offset in range(0, len(body), LIGHT_SIZE)
    ]

    return StreamFrame(
        color_space=color_space,
        entertainment_area=bytes(data[_HEADER.size:HEADER_SIZE]),
        lights=lights,
        version=(major, minor),
        sequence=sequence,
    )
