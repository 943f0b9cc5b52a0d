"""
Custom Exception Hierarchy for huestream

Provides structured exceptions for the streaming client.
All custom exceptions inherit from HueStreamError base class.
"""
from typing import Any, List, Optional


class HueStreamError(Exception):
    """
    Base exception for all huestream errors.

    Lets callers catch every client failure with a single except clause.
    """
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration and Value Errors

class ValidationError(HueStreamError):
    """
    Bad configuration or color values.

    Raised eagerly at construction time, never while streaming.
    """
    pass


# REST Control Errors

class ControlError(HueStreamError):
    """
    Arming or disarming the entertainment area failed.

    Carries the HTTP status code and body (or the bridge's errors array)
    for diagnostics.
    """
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        errors: Optional[List[Any]] = None,
    ):
        super().__init__(
            message,
            {"status_code": status_code, "body": body, "errors": errors},
        )
        self.status_code = status_code
        self.body = body
        self.errors = errors


class ControlCancelledError(ControlError):
    """An in-flight control call was abandoned because the client was closed."""
    pass


# Network and Transport Errors

class TransportError(HueStreamError):
    """
    Secured datagram transport failures.

    Base class for DTLS handshake and send errors.
    """
    pass


class HandshakeError(TransportError):
    """DTLS session could not be established with the bridge."""
    pass


class SendError(TransportError):
    """Failed to hand a datagram to the local network stack."""
    pass


# Lifecycle Errors

class StateError(HueStreamError):
    """Operation invoked in the wrong lifecycle state."""
    def __init__(self, message: str, current_state: str, expected_state: Optional[str] = None):
        super().__init__(message, {"current_state": current_state, "expected_state": expected_state})
        self.current_state = current_state
        self.expected_state = expected_state
