"""
Tests for the PSK-DTLS transport.

Tests cover:
- DTLS configuration (version, cipher suite, PSK identity)
- Handshake success and failure wrapping
- Send path, MTU limit and statistics
- Idempotent close
"""
import socket
from unittest.mock import MagicMock, patch

import pytest

from huestream.engine.dtls import PSK_CIPHER_SUITE, DtlsTransport
from huestream.exceptions import HandshakeError, SendError, TransportError

PSK = bytes.fromhex("00112233445566778899aabbccddeeff")
ADDRINFO = [(socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("192.168.1.2", 2100))]


@pytest.fixture
def transport():
    return DtlsTransport(host="192.168.1.2", port=2100, identity="app-key", psk=PSK, mtu=1500)


@pytest.fixture
def wrapped():
    """Patch socket creation and mbedtls; yield the wrapped DTLS socket mock."""
    dtls_sock = MagicMock(name="dtls_socket")
    context = MagicMock(name="client_context")
    context.wrap_socket.return_value = dtls_sock

    with patch("huestream.engine.dtls.socket.getaddrinfo", return_value=ADDRINFO), \
            patch("huestream.engine.dtls.socket.socket") as mock_socket, \
            patch("huestream.engine.dtls.DTLSConfiguration") as mock_config, \
            patch("huestream.engine.dtls.ClientContext", return_value=context) as mock_context:
        dtls_sock.raw_socket = mock_socket.return_value
        dtls_sock.config_class = mock_config
        dtls_sock.context_class = mock_context
        yield dtls_sock


class TestHandshake:
    """Session establishment."""

    def test_connect_runs_handshake(self, transport, wrapped):
        transport.connect()

        wrapped.connect.assert_called_once_with(("192.168.1.2", 2100))
        wrapped.do_handshake.assert_called_once()
        assert transport.connected is True
        assert transport.connected_at is not None

    def test_offers_only_dtls12_psk_gcm(self, transport, wrapped):
        transport.connect()

        kwargs = wrapped.config_class.call_args.kwargs
        assert kwargs["pre_shared_key"] == ("app-key", PSK)
        assert kwargs["ciphers"] == [PSK_CIPHER_SUITE] == ["TLS-PSK-WITH-AES-128-GCM-SHA256"]
        assert kwargs["lowest_supported_version"] == kwargs["highest_supported_version"]
        assert kwargs["validate_certificates"] is False

    def test_socket_timeout_bounds_handshake(self, wrapped):
        transport = DtlsTransport("192.168.1.2", 2100, "app-key", PSK, handshake_timeout_sec=2.5)

        transport.connect()

        wrapped.raw_socket.settimeout.assert_called_once_with(2.5)

    def test_handshake_failure_raises_transport_error(self, transport, wrapped):
        wrapped.do_handshake.side_effect = socket.timeout("timed out")

        with pytest.raises(HandshakeError) as exc_info:
            transport.connect()

        assert isinstance(exc_info.value, TransportError)
        assert exc_info.value.details["error"] == "timed out"
        wrapped.close.assert_called_once()
        assert transport.connected is False

    def test_socket_creation_failure(self, transport):
        with patch("huestream.engine.dtls.socket.getaddrinfo", return_value=ADDRINFO), \
                patch("huestream.engine.dtls.socket.socket", side_effect=OSError("too many open files")):
            with pytest.raises(HandshakeError) as exc_info:
                transport.connect()

        assert exc_info.value.details["error"] == "too many open files"
        assert transport.connected is False

    def test_resolution_failure(self, transport):
        with patch("huestream.engine.dtls.socket.getaddrinfo", side_effect=socket.gaierror("no such host")):
            with pytest.raises(HandshakeError, match="resolve"):
                transport.connect()

    def test_connect_twice_is_noop(self, transport, wrapped):
        transport.connect()
        transport.connect()

        wrapped.do_handshake.assert_called_once()

    def test_cannot_reconnect_after_close(self, transport, wrapped):
        transport.connect()
        transport.close()

        with pytest.raises(HandshakeError, match="closed"):
            transport.connect()

    def test_rejects_wrong_psk_size(self):
        with pytest.raises(ValueError):
            DtlsTransport("192.168.1.2", 2100, "app-key", b"short")


class TestSend:
    """Datagram send path."""

    def test_send_writes_datagram(self, transport, wrapped):
        transport.connect()

        transport.send(b"HueStream-frame")

        wrapped.send.assert_called_once_with(b"HueStream-frame")
        assert transport.datagrams_sent == 1
        assert transport.bytes_sent == 15
        assert transport.last_send is not None

    def test_send_before_connect(self, transport):
        with pytest.raises(SendError, match="Not connected"):
            transport.send(b"data")

    def test_oversized_datagram(self, transport, wrapped):
        transport.connect()

        with pytest.raises(SendError, match="exceeds MTU"):
            transport.send(b"\x00" * 1501)

        wrapped.send.assert_not_called()

    def test_local_send_failure(self, transport, wrapped):
        transport.connect()
        wrapped.send.side_effect = OSError("network is down")

        with pytest.raises(SendError) as exc_info:
            transport.send(b"data")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert transport.datagrams_sent == 0

    def test_send_after_close(self, transport, wrapped):
        transport.connect()
        transport.close()

        with pytest.raises(SendError):
            transport.send(b"data")

    def test_get_stats(self, transport, wrapped):
        transport.connect()
        transport.send(b"abc")

        stats = transport.get_stats()

        assert stats["connected"] is True
        assert stats["datagrams_sent"] == 1
        assert stats["bytes_sent"] == 3
        assert stats["connected_at"] is not None


class TestClose:
    """Teardown."""

    def test_close_is_idempotent(self, transport, wrapped):
        transport.connect()

        transport.close()
        transport.close()

        wrapped.close.assert_called_once()
        assert transport.connected is False

    def test_close_without_connect(self, transport):
        transport.close()

        assert transport.connected is False

    def test_close_failure_is_logged_not_raised(self, transport, wrapped):
        transport.connect()
        wrapped.close.side_effect = OSError("already gone")

        transport.close()

        assert transport.connected is False
