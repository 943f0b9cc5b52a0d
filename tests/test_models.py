"""
Tests for StreamConfig validation.

Tests cover:
- Required options and defaults
- Client key decoding
- Entertainment area length
- camelCase aliases
- Conversion of pydantic errors into ValidationError
"""
import pytest

from huestream.config import settings
from huestream.exceptions import ValidationError
from huestream.models import SessionState, StreamConfig

AREA = "6eaf2b0c-1c4d-4a3e-9f6b-0123456789ab"
CLIENT_KEY = "00112233445566778899aabbccddeeff"


@pytest.fixture
def options():
    return {
        "host": "192.168.1.2",
        "username": "app-key",
        "client_key": CLIENT_KEY,
        "entertainment_area": AREA,
    }


class TestStreamConfig:
    """Validation of connection settings."""

    def test_defaults(self, options):
        config = StreamConfig.from_options(options)

        assert config.port == settings.default_port == 2100
        assert config.tries == settings.default_tries == 3
        assert config.color_space == 0

    def test_psk_decodes_to_16_bytes(self, options):
        config = StreamConfig.from_options(options)

        assert config.psk == bytes.fromhex(CLIENT_KEY)
        assert len(config.psk) == 16

    def test_area_id_bytes(self, options):
        assert StreamConfig.from_options(options).area_id == AREA.encode("utf-8")

    def test_accepts_camel_case_aliases(self):
        config = StreamConfig.from_options(
            host="bridge.local",
            username="app-key",
            clientKey=CLIENT_KEY,
            entertainmentArea=AREA,
        )

        assert config.client_key == CLIENT_KEY
        assert config.entertainment_area == AREA

    def test_none_values_fall_back_to_defaults(self, options):
        config = StreamConfig.from_options(options, port=None, tries=None)

        assert config.port == 2100
        assert config.tries == 3

    @pytest.mark.parametrize("missing", ["host", "username", "client_key", "entertainment_area"])
    def test_missing_required_option(self, options, missing):
        del options[missing]

        with pytest.raises(ValidationError):
            StreamConfig.from_options(options)

    @pytest.mark.parametrize("field", ["host", "username"])
    def test_empty_string_rejected(self, options, field):
        options[field] = ""

        with pytest.raises(ValidationError):
            StreamConfig.from_options(options)

    @pytest.mark.parametrize(
        "client_key",
        [CLIENT_KEY[:-2], CLIENT_KEY + "00", "zz" + CLIENT_KEY[2:], "00 11223344556677889900aabbccddee"],
    )
    def test_bad_client_key(self, options, client_key):
        options["client_key"] = client_key

        with pytest.raises(ValidationError, match="client"):
            StreamConfig.from_options(options)

    @pytest.mark.parametrize("area", [AREA[:-1], AREA + "0", "000000000000000000000000000000000A"])
    def test_area_must_be_36_bytes(self, options, area):
        options["entertainment_area"] = area

        with pytest.raises(ValidationError, match="36 bytes"):
            StreamConfig.from_options(options)

    def test_area_message_matches_frame_check(self, options):
        options["entertainment_area"] = AREA[:-1]

        with pytest.raises(ValidationError, match=f"Invalid value {AREA[:-1]} for entertainment area ID"):
            StreamConfig.from_options(options)

    @pytest.mark.parametrize(
        "host",
        ["[::1", "1.2.3.4/other", "bad host", "bridge.local:443", "bridge.local?x=1", "a#b", "user@bridge", "::1"],
    )
    def test_malformed_host_rejected(self, options, host):
        options["host"] = host

        with pytest.raises(ValidationError, match="host"):
            StreamConfig.from_options(options)

    @pytest.mark.parametrize("host", ["192.168.1.2", "bridge.local", "[fe80::1]"])
    def test_valid_hosts(self, options, host):
        options["host"] = host

        assert StreamConfig.from_options(options).host == host

    @pytest.mark.parametrize("tries", [0, -1])
    def test_tries_must_be_positive(self, options, tries):
        options["tries"] = tries

        with pytest.raises(ValidationError, match="tries"):
            StreamConfig.from_options(options)

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_range(self, options, port):
        options["port"] = port

        with pytest.raises(ValidationError, match="port"):
            StreamConfig.from_options(options)

    def test_only_rgb_color_space(self, options):
        options["color_space"] = 1

        with pytest.raises(ValidationError, match="RGB"):
            StreamConfig.from_options(options)

    def test_error_details_list_all_failures(self, options):
        options["tries"] = 0
        options["port"] = 0

        with pytest.raises(ValidationError) as exc_info:
            StreamConfig.from_options(options)

        assert len(exc_info.value.details["errors"]) == 2

    def test_secrets_hidden_from_repr(self, options):
        text = repr(StreamConfig.from_options(options))

        assert CLIENT_KEY not in text
        assert "app-key" not in text

    def test_is_frozen(self, options):
        config = StreamConfig.from_options(options)

        with pytest.raises(Exception):
            config.tries = 5


def test_session_states():
    assert [state.value for state in SessionState] == ["idle", "arming", "streaming", "disarming"]
