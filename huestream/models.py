"""
Core data models
"""
from enum import Enum
from typing import Any, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from huestream.config import settings
from huestream.engine.colors import ColorSpace
from huestream.engine.frame import validate_entertainment_area
from huestream.exceptions import ValidationError

CLIENT_KEY_LENGTH = 32
_HOST_FORBIDDEN = "/?#@"


class SessionState(str, Enum):
    """Streaming session lifecycle state"""

    IDLE = "idle"
    ARMING = "arming"
    STREAMING = "streaming"
    DISARMING = "disarming"


class StreamConfig(BaseModel):
    """Validated connection settings for one entertainment area"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    host: str = Field(min_length=1)
    port: int = Field(default_factory=lambda: settings.default_port, ge=1, le=65535)
    username: str = Field(min_length=1, repr=False)
    client_key: str = Field(alias="clientKey", repr=False)
    entertainment_area: str = Field(alias="entertainmentArea")
    tries: int = Field(default_factory=lambda: settings.default_tries, ge=1)
    color_space: int = Field(default=ColorSpace.RGB.value, alias="colorSpace")

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        if any(char in value for char in _HOST_FORBIDDEN) or any(char.isspace() for char in value):
            raise ValueError(f"host {value!r} must be a bare hostname or IP address")
        bracketed = value.startswith("[") and value.endswith("]")
        if not bracketed and ":" in value:
            raise ValueError(f"host {value!r} must not carry a port; use a bracketed IPv6 literal")
        try:
            url = httpx.URL(f"https://{value}")
        except httpx.InvalidURL as e:
            raise ValueError(f"host {value!r} is not a valid hostname: {e}")
        if not url.host:
            raise ValueError(f"host {value!r} is not a valid hostname")
        return value

    @field_validator("client_key")
    @classmethod
    def _check_client_key(cls, value: str) -> str:
        if len(value) != CLIENT_KEY_LENGTH:
            raise ValueError(f"client key must be {CLIENT_KEY_LENGTH} hex characters long")
        try:
            decoded = bytes.fromhex(value)
        except ValueError:
            raise ValueError("client key must contain only hex characters")
        if len(decoded) != CLIENT_KEY_LENGTH // 2:
            raise ValueError("client key must contain only hex characters")
        return value

    @field_validator("entertainment_area")
    @classmethod
    def _check_entertainment_area(cls, value: str) -> str:
        try:
            validate_entertainment_area(value)
        except ValidationError as e:
            raise ValueError(e.message)
        return value

    @field_validator("color_space")
    @classmethod
    def _check_color_space(cls, value: int) -> int:
        if not 0 <= value <= 0xFF:
            raise ValueError("color space must be between 0 and 255, inclusive")
        if value != ColorSpace.RGB:
            raise ValueError("only the RGB color space is supported")
        return value

    @property
    def psk(self) -> bytes:
        """16 raw key bytes decoded from the client key"""
        return bytes.fromhex(self.client_key)

    @property
    def area_id(self) -> bytes:
        return self.entertainment_area.encode("utf-8")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "StreamConfig":
        """
        Validate a mapping of options into a StreamConfig.

        Accepts both snake_case names and the camelCase aliases
        (clientKey, entertainmentArea, colorSpace). Unset options are
        dropped so defaults apply.

        Raises:
            ValidationError: Any option is missing or invalid
        """
        merged = dict(options or {})
        merged.update(kwargs)
        merged = {key: value for key, value in merged.items() if value is not None}
        try:
            return cls.model_validate(merged)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False)
            first = errors[0]
            field = ".".join(str(part) for part in first["loc"]) or "config"
            raise ValidationError(
                f"Invalid value for {field}: {first['msg']}",
                details={"errors": [{"loc": err["loc"], "msg": err["msg"]} for err in errors]},
            ) from e
