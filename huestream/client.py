"""
Synchronous client for the Hue Entertainment streaming API.

The client arms an entertainment area over REST, opens a PSK-DTLS session to
the bridge and then streams color frames over it. Frames are not
acknowledged, so every frame is written ``tries`` times back to back.

Lifecycle:
    idle --initialize_stream()--> arming --> streaming
    streaming --send_*()--> streaming
    any --close()--> disarming --> idle

Example usage:
    client = HueEntertainmentClient.build({
        "host": "192.168.1.2",
        "username": app_key,
        "client_key": client_key,
        "entertainment_area": area_id,
    })
    with client:
        client.initialize_stream()
        client.send_colors(RED, BLUE)
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Mapping, Optional, Union

import structlog

from huestream.engine.colors import HueColor
from huestream.engine.control import CancellationToken, ControlClient
from huestream.engine.dtls import DtlsTransport
from huestream.engine.frame import Light, serialize_stream_command
from huestream.exceptions import ControlCancelledError, ControlError, StateError, ValidationError
from huestream.models import SessionState, StreamConfig

logger = structlog.get_logger()

TransportFactory = Callable[[StreamConfig], Any]


def open_dtls_transport(config: StreamConfig) -> DtlsTransport:
    """Default transport factory: handshake a new DTLS session."""
    transport = DtlsTransport(
        host=config.host,
        port=config.port,
        identity=config.username,
        psk=config.psk,
    )
    transport.connect()
    return transport


class HueEntertainmentClient:
    """
    Streams colors to one entertainment area.

    The client exclusively owns its DTLS session. A lock guards the
    lifecycle fields and is never held across network I/O, so close() can
    run from another thread while initialize_stream() is blocked on the
    bridge.
    """

    def __init__(
        self,
        config: StreamConfig,
        control: Optional[ControlClient] = None,
        transport_factory: Optional[TransportFactory] = None,
    ):
        self.config = config
        self._area_id = config.area_id
        # A control client passed in by the caller stays open after close()
        self._owns_control = control is None
        self._control: Optional[ControlClient] = control
        self._transport_factory = transport_factory or open_dtls_transport

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._pending: Optional[CancellationToken] = None
        self._transport: Optional[Any] = None
        self._armed = False
        self._control_client()

    @classmethod
    def build(
        cls,
        config: Union[StreamConfig, Mapping[str, Any]],
        **kwargs: Any,
    ) -> "HueEntertainmentClient":
        """
        Create a client from a StreamConfig or a mapping of options.

        Raises:
            ValidationError: The configuration is incomplete or invalid
        """
        if not isinstance(config, StreamConfig):
            config = StreamConfig.from_options(config)
        return cls(config, **kwargs)

    def _control_client(self) -> ControlClient:
        # Called with the lock held; recreated after close() released it
        if self._control is None:
            self._control = ControlClient(
                host=self.config.host,
                username=self.config.username,
                entertainment_area=self.config.entertainment_area,
            )
        return self._control

    def _release_control(self) -> None:
        with self._lock:
            if not self._owns_control or self._control is None:
                return
            control, self._control = self._control, None
        control.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def tries(self) -> int:
        return self.config.tries

    def initialize_stream(self) -> None:
        """
        Arm the entertainment area and open a fresh DTLS session.

        Must succeed before any colors can be sent. A previous session, if
        any, is closed once the arm request has completed or failed.

        Raises:
            ControlError: The bridge refused to start streaming
            ControlCancelledError: close() was called while arming
            TransportError: The DTLS handshake failed
            StateError: Another arm or disarm is in progress
        """
        with self._lock:
            if self._state in (SessionState.ARMING, SessionState.DISARMING):
                raise StateError(
                    f"Cannot initialize stream while {self._state.value}",
                    current_state=self._state.value,
                    expected_state=SessionState.IDLE.value,
                )
            control = self._control_client()
            token = CancellationToken()
            self._pending = token
            self._state = SessionState.ARMING
            previous, self._transport = self._transport, None

        logger.info(
            "stream_initializing",
            host=self.config.host,
            entertainment_area=self.config.entertainment_area,
        )

        try:
            control.arm(token)
        except BaseException:
            with self._lock:
                if self._pending is token:
                    self._pending = None
                    self._state = SessionState.IDLE
            raise
        finally:
            # The previous session is dropped once the bridge has answered
            if previous is not None:
                previous.close()

        with self._lock:
            if token.cancelled:
                raise ControlCancelledError("Client closed while arming the entertainment area")
            self._armed = True

        logger.info("entertainment_area_armed", entertainment_area=self.config.entertainment_area)

        try:
            transport = self._transport_factory(self.config)
        except BaseException:
            with self._lock:
                if self._pending is token:
                    self._pending = None
                    self._state = SessionState.IDLE
            raise

        with self._lock:
            if self._pending is token:
                self._pending = None
                self._transport = transport
                self._state = SessionState.STREAMING
                transport = None

        if transport is not None:
            # close() ran during the handshake and already disarmed
            transport.close()
            raise ControlCancelledError("Client closed while opening the DTLS session")

        logger.info("stream_initialized", host=self.config.host, port=self.config.port, tries=self.tries)

    def send_color(self, count: int, color: HueColor) -> None:
        """
        Set channels 0 through count - 1 to a single color.

        Raises:
            StateError: initialize_stream() has not succeeded
            TransportError: A datagram could not be sent
        """
        if count < 0:
            raise ValidationError(f"Invalid light count {count}; must not be negative", details={"count": count})
        self.send_lights(*(Light(channel, color) for channel in range(count)))

    def send_colors(self, *colors: HueColor) -> None:
        """Send colors[i] to channel i."""
        self.send_lights(*(Light(channel, color) for channel, color in enumerate(colors)))

    def send_lights(self, *lights: Light) -> None:
        """
        Send colors for specific channels.

        The frame is written ``tries`` times; the first transport error
        aborts the remaining writes.

        Raises:
            StateError: initialize_stream() has not succeeded
            TransportError: A datagram could not be sent
        """
        transport = self._transport
        if transport is None:
            raise StateError(
                "Must initialize stream before sending colors to bridge",
                current_state=self._state.value,
                expected_state=SessionState.STREAMING.value,
            )

        if not lights:
            return

        frame = serialize_stream_command(self.config.color_space, self._area_id, lights)

        for _ in range(self.config.tries):
            transport.send(frame)

    def close(self) -> None:
        """
        Release all resources, cancelling an in-flight initialize_stream().

        Disarms the area if it was armed (or being armed) and always closes
        the DTLS session. A disarm failure is raised after teardown.
        """
        with self._lock:
            token, self._pending = self._pending, None
            if token is not None:
                token.cancel()
            should_disarm = self._armed or token is not None
            self._armed = False
            transport, self._transport = self._transport, None
            if not should_disarm and transport is None:
                self._state = SessionState.IDLE
                control = None
            else:
                self._state = SessionState.DISARMING
                control = self._control_client() if should_disarm else None

        if control is None and transport is None:
            self._release_control()
            return

        disarm_error: Optional[ControlError] = None
        try:
            if control is not None:
                try:
                    control.disarm()
                    logger.info("entertainment_area_disarmed", entertainment_area=self.config.entertainment_area)
                except ControlError as e:
                    logger.warning(
                        "entertainment_area_disarm_failed",
                        entertainment_area=self.config.entertainment_area,
                        error=str(e),
                        status_code=e.status_code,
                    )
                    disarm_error = e
        finally:
            if transport is not None:
                transport.close()
            with self._lock:
                if self._state is SessionState.DISARMING:
                    self._state = SessionState.IDLE
            self._release_control()

        if disarm_error is not None:
            raise disarm_error

    def get_stats(self) -> Dict[str, Any]:
        transport = self._transport
        return {
            "state": self._state.value,
            "tries": self.tries,
            "transport": transport.get_stats() if transport is not None and hasattr(transport, "get_stats") else None,
        }

    def __enter__(self) -> "HueEntertainmentClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
