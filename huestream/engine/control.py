"""
REST control calls for entertainment areas.

Arming and disarming are single CLIP v2 PUT requests against
/clip/v2/resource/entertainment_configuration/{area}. No retries.

A call made with a CancellationToken runs on a worker thread while the
caller waits on it, so another thread can abandon the call by cancelling the
token. The late response of an abandoned call is discarded.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Optional

import httpx
import structlog

from huestream.config import settings
from huestream.exceptions import ControlCancelledError, ControlError

logger = structlog.get_logger()

ACTION_START = "start"
ACTION_STOP = "stop"


class CancellationToken:
    """One-shot cancellation flag shared between a caller and a canceller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ControlClient:
    """
    Issues start/stop requests for one entertainment area.

    Args:
        host: Bridge hostname or IP
        username: Application key, sent as the hue-application-key header
        entertainment_area: Entertainment configuration id
        timeout_sec: Per-request timeout
        verify: TLS verification passed to httpx (bridges use self-signed certs)
        transport: Optional httpx transport, replaces the network stack
    """

    def __init__(
        self,
        host: str,
        username: str,
        entertainment_area: str,
        timeout_sec: Optional[float] = None,
        verify: Optional[Any] = None,
        transport: Optional[httpx.BaseTransport] = None,
        poll_interval_sec: Optional[float] = None,
    ):
        self.host = host
        self.entertainment_area = entertainment_area
        self.path = f"/clip/v2/resource/entertainment_configuration/{entertainment_area}"
        self.poll_interval_sec = poll_interval_sec or settings.cancel_poll_interval_sec

        self._client = httpx.Client(
            base_url=f"https://{host}",
            headers={"hue-application-key": username},
            timeout=timeout_sec or settings.rest_timeout_sec,
            verify=settings.rest_verify_tls if verify is None else verify,
            transport=transport,
        )
        # Two workers so a disarm is never queued behind an abandoned arm
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="huestream-control")

    def arm(self, token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        """Ask the bridge to start accepting stream frames for the area."""
        return self.request_action(ACTION_START, token)

    def disarm(self, token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        """Ask the bridge to stop streaming for the area."""
        return self.request_action(ACTION_STOP, token)

    def request_action(self, action: str, token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        """
        Send one action request and validate the response.

        Returns:
            The decoded JSON response object

        Raises:
            ControlCancelledError: token was cancelled before the call finished
            ControlError: transport failure, non-2xx status, non-object body,
                or a non-empty errors array
        """
        if token is None:
            return self._request(action)

        if token.cancelled:
            raise ControlCancelledError(f"Control request '{action}' cancelled before it was sent")

        future: Future = self._executor.submit(self._request, action)
        while True:
            try:
                return future.result(timeout=self.poll_interval_sec)
            except FutureTimeoutError:
                if token.cancelled:
                    future.cancel()
                    logger.info(
                        "control_request_abandoned",
                        action=action,
                        entertainment_area=self.entertainment_area,
                    )
                    raise ControlCancelledError(f"Control request '{action}' cancelled while in flight")

    def _request(self, action: str) -> Dict[str, Any]:
        try:
            response = self._client.put(self.path, json={"action": action})
        except httpx.HTTPError as e:
            logger.error(
                "control_request_failed",
                action=action,
                host=self.host,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ControlError(f"Request to {self.host} failed: {e}") from e

        body = response.text
        if not 200 <= response.status_code < 300:
            raise ControlError(
                f"Request failed with status code {response.status_code}; body: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ControlError(
                "Response body is not valid JSON",
                status_code=response.status_code,
                body=body,
            ) from e

        if not isinstance(payload, dict):
            raise ControlError(
                f"Expected response to be JSON object, but was {type(payload).__name__}",
                status_code=response.status_code,
                body=body,
            )

        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            raise ControlError(
                f"Response contains errors: {errors}",
                status_code=response.status_code,
                body=body,
                errors=errors,
            )

        logger.debug("control_request_succeeded", action=action, status_code=response.status_code)
        return payload

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._client.close()
