"""
Secured datagram transport.

Wraps a UDP socket in a PSK-authenticated DTLS 1.2 session using
python-mbedtls. The bridge only speaks DTLS 1.2 with
TLS_PSK_WITH_AES_128_GCM_SHA256, so exactly that version and suite are
offered. The handshake is delegated entirely to mbed TLS.

Datagrams are fire-and-forget: send() returns once the record is handed to
the local network stack. The bridge expires sessions after roughly ten
seconds without traffic and there is no keepalive here; the caller's send
cadence keeps the session alive.
"""
from __future__ import annotations

import socket
from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from mbedtls.exceptions import TLSError
from mbedtls.tls import ClientContext, DTLSConfiguration, DTLSVersion

from huestream.config import settings
from huestream.exceptions import HandshakeError, SendError

logger = structlog.get_logger()

PSK_CIPHER_SUITE = "TLS-PSK-WITH-AES-128-GCM-SHA256"
PSK_SIZE = 16


class DtlsTransport:
    """
    PSK-DTLS session to a single bridge.

    Lifecycle is connect() once, send() any number of times, close() once
    or more. A closed transport cannot be reconnected; create a new one.
    """

    def __init__(
        self,
        host: str,
        port: int,
        identity: str,
        psk: bytes,
        handshake_timeout_sec: Optional[float] = None,
        mtu: Optional[int] = None,
    ):
        if len(psk) != PSK_SIZE:
            raise ValueError(f"PSK must be {PSK_SIZE} bytes, got {len(psk)}")

        self.host = host
        self.port = port
        self.identity = identity
        self._psk = psk
        self.handshake_timeout_sec = handshake_timeout_sec or settings.dtls_handshake_timeout_sec
        self.mtu = mtu or settings.dtls_mtu

        self._sock: Optional[Any] = None
        self._closed = False

        # Statistics
        self.connected_at: Optional[datetime] = None
        self.last_send: Optional[datetime] = None
        self.datagrams_sent = 0
        self.bytes_sent = 0

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def _build_configuration(self) -> DTLSConfiguration:
        return DTLSConfiguration(
            pre_shared_key=(self.identity, self._psk),
            ciphers=[PSK_CIPHER_SUITE],
            validate_certificates=False,
            lowest_supported_version=DTLSVersion.DTLSv1_2,
            highest_supported_version=DTLSVersion.DTLSv1_2,
            handshake_timeout_max=self.handshake_timeout_sec,
        )

    def connect(self) -> None:
        """
        Open the UDP socket and run the DTLS handshake.

        Raises:
            HandshakeError: Name resolution, socket setup or handshake failed
        """
        if self._closed:
            raise HandshakeError(
                "Transport already closed",
                details={"host": self.host, "port": self.port},
            )
        if self._sock is not None:
            return

        try:
            family, sock_type, proto, _, address = socket.getaddrinfo(
                self.host, self.port, type=socket.SOCK_DGRAM
            )[0]
        except OSError as e:
            raise HandshakeError(
                f"Failed to resolve {self.host}:{self.port}",
                details={"error": str(e)},
            ) from e

        sock = None
        try:
            sock = socket.socket(family, sock_type, proto)
            sock.settimeout(self.handshake_timeout_sec)
            context = ClientContext(self._build_configuration())
            sock = context.wrap_socket(sock, server_hostname=None)
            sock.connect(address)
            sock.do_handshake()
        except (TLSError, OSError) as e:
            logger.error(
                "dtls_handshake_failed",
                host=self.host,
                port=self.port,
                identity=self.identity,
                error=str(e),
                error_type=type(e).__name__,
            )
            if sock is not None:
                self._close_socket(sock)
            raise HandshakeError(
                f"DTLS handshake with {self.host}:{self.port} failed",
                details={"error": str(e), "error_type": type(e).__name__},
            ) from e

        self._sock = sock
        self.connected_at = datetime.utcnow()
        logger.info(
            "dtls_session_established",
            host=self.host,
            port=self.port,
            cipher=PSK_CIPHER_SUITE,
        )

    def send(self, data: bytes) -> None:
        """Send one datagram without waiting for acknowledgement."""
        sock = self._sock
        if sock is None:
            raise SendError("Not connected", details={"host": self.host, "port": self.port})

        if len(data) > self.mtu:
            raise SendError(
                f"Datagram of {len(data)} bytes exceeds MTU of {self.mtu}",
                details={"data_size": len(data), "mtu": self.mtu},
            )

        try:
            sock.send(data)
        except (TLSError, OSError) as e:
            raise SendError(
                f"Failed to send datagram to {self.host}:{self.port}",
                details={"error": str(e), "data_size": len(data)},
            ) from e

        self.datagrams_sent += 1
        self.bytes_sent += len(data)
        self.last_send = datetime.utcnow()

    def close(self) -> None:
        """Tear down the DTLS session and socket. Safe to call repeatedly."""
        self._closed = True
        sock, self._sock = self._sock, None
        if sock is None:
            return

        self._close_socket(sock)
        logger.info(
            "dtls_session_closed",
            host=self.host,
            port=self.port,
            datagrams_sent=self.datagrams_sent,
        )

    def _close_socket(self, sock: Any) -> None:
        try:
            sock.close()
        except (TLSError, OSError) as e:
            logger.warning(
                "dtls_socket_close_failed",
                host=self.host,
                port=self.port,
                error=str(e),
                error_type=type(e).__name__,
            )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "datagrams_sent": self.datagrams_sent,
            "bytes_sent": self.bytes_sent,
            "connected_at": self.connected_at.isoformat() if self.connected_at else None,
            "last_send": self.last_send.isoformat() if self.last_send else None,
        }
