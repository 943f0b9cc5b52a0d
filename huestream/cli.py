"""
Command-line streaming demo

Arms an entertainment area, streams a few frames and disarms it again:
1. color      - set the first N channels to one color
2. colors     - one color per channel, in order
3. alternate  - swap two colors between channels 0 and 1 repeatedly

Connection options default to HUESTREAM_* environment variables.
"""
import argparse
import logging
import sys
import time
from typing import List, Optional, Sequence

import structlog

from huestream.client import HueEntertainmentClient
from huestream.config import settings
from huestream.engine.colors import Rgb
from huestream.engine.frame import Light, parse_stream_command, serialize_stream_command
from huestream.exceptions import HueStreamError
from huestream.logging import setup_logging
from huestream.models import StreamConfig

logger = structlog.get_logger()


def _lights_for(args: argparse.Namespace) -> List[Light]:
    if args.command == "color":
        color = Rgb.from_hex(args.color)
        return [Light(channel, color) for channel in range(args.count)]
    if args.command == "colors":
        return [Light(channel, Rgb.from_hex(value)) for channel, value in enumerate(args.colors)]
    return [Light(0, Rgb.from_hex(args.first)), Light(1, Rgb.from_hex(args.second))]


def _dry_run(config: StreamConfig, lights: Sequence[Light]) -> None:
    frame = serialize_stream_command(config.color_space, config.area_id, lights)
    decoded = parse_stream_command(frame)
    print(frame.hex())
    print(f"{len(frame)} bytes, {len(decoded.lights)} lights, sent {config.tries}x per update")
    for light in decoded.lights:
        print(f"  channel {light.channel}: {light.color}")


def _stream(client: HueEntertainmentClient, args: argparse.Namespace, lights: Sequence[Light]) -> None:
    client.initialize_stream()
    if args.command != "alternate":
        client.send_lights(*lights)
        # Frames are fire-and-forget; hold the session briefly so they land
        time.sleep(args.hold)
        return

    first, second = lights[0].color, lights[1].color
    for i in range(args.iterations):
        if (i // 2) % 2 == 0:
            client.send_colors(first, second)
        else:
            client.send_colors(second, first)
        time.sleep(args.interval)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hue Entertainment streaming client")
    parser.add_argument("--host", default=settings.bridge_host, help="Bridge hostname or IP")
    parser.add_argument("--port", type=int, default=settings.default_port, help="DTLS port on the bridge")
    parser.add_argument("--username", default=settings.username, help="Application key / PSK identity")
    parser.add_argument("--client-key", default=settings.client_key, help="32 hex character client key")
    parser.add_argument(
        "--entertainment-area",
        default=settings.entertainment_area,
        help="36 character entertainment configuration id",
    )
    parser.add_argument("--tries", type=int, default=settings.default_tries, help="Copies of each frame to send")
    parser.add_argument("--dry-run", action="store_true", help="Print the encoded frame instead of streaming")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    color = subparsers.add_parser("color", help="Set channels 0..count-1 to one color")
    color.add_argument("color", help="Hex color, e.g. ffffff")
    color.add_argument("--count", type=int, default=2, help="Number of channels")
    color.add_argument("--hold", type=float, default=1.0, help="Seconds to keep the stream open")

    colors = subparsers.add_parser("colors", help="One hex color per channel")
    colors.add_argument("colors", nargs="+", help="Hex colors, channel 0 first")
    colors.add_argument("--hold", type=float, default=1.0, help="Seconds to keep the stream open")

    alternate = subparsers.add_parser("alternate", help="Alternate two colors on channels 0 and 1")
    alternate.add_argument("--first", default="00ff00", help="Hex color for channel 0 on even steps")
    alternate.add_argument("--second", default="0000ff", help="Hex color for channel 1 on even steps")
    alternate.add_argument("--iterations", type=int, default=100)
    alternate.add_argument("--interval", type=float, default=0.1, help="Seconds between frames")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging("cli", level=logging.DEBUG if args.verbose else logging.INFO, log_to_file=False)

    try:
        config = StreamConfig.from_options(
            host=args.host,
            port=args.port,
            username=args.username,
            client_key=args.client_key,
            entertainment_area=args.entertainment_area,
            tries=args.tries,
        )
        lights = _lights_for(args)

        if args.dry_run:
            _dry_run(config, lights)
            return 0

        with HueEntertainmentClient.build(config) as client:
            _stream(client, args, lights)
    except HueStreamError as e:
        logger.error("stream_failed", error=e.message, error_type=type(e).__name__, details=e.details)
        return 1
    except KeyboardInterrupt:
        logger.info("stream_interrupted")

    return 0


if __name__ == "__main__":
    sys.exit(main())
