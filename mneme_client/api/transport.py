"""
Mneme Sync Client - HTTP Transport Module

Retrying HTTP request executor used for all coordinator communication.
Each attempt is time bounded; network-level failures are retried with
exponential backoff, received responses never are.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from ..exceptions import MnemeSyncUnreachableError, MnemeSyncResponseTooLargeError

# Configure logging
logger = logging.getLogger(__name__)

MAX_RESPONSE_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKOFF_SECONDS = 0.5

# Failures where no response was received; only these are retried
RETRYABLE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


@dataclass
class TransportResponse:
    """Status code plus decoded JSON body ({'raw': text} for non-JSON bodies)."""
    status: int
    data: Dict[str, Any] = field(default_factory=dict)


class Transport:
    """
    HTTP executor for the coordinator.

    Responsibilities:
    - Apply the bearer token and JSON content type
    - Bound every attempt with a timeout
    - Retry connection errors and timeouts with doubling backoff
    - Cap the response body size (hard failure, not retried)
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 timeout_seconds: float = 10.0, retries: int = 3,
                 backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
                 max_response_bytes: int = MAX_RESPONSE_BYTES,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize transport.

        Args:
            base_url: Coordinator base URL (trailing slash is stripped)
            api_key: Optional bearer token
            timeout_seconds: Timeout applied to each attempt
            retries: Extra attempts after the first, network failures only
            backoff_seconds: Delay before the first retry, doubled each retry
            max_response_bytes: Response body cap
            session: Optional requests.Session (one is created otherwise)
            sleep: Function used to wait between attempts
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.retries = max(0, int(retries))
        self.backoff_seconds = backoff_seconds
        self.max_response_bytes = max_response_bytes
        # Use session for connection pooling across the requests of one pass
        self.session = session or requests.Session()
        self._sleep = sleep
        logger.debug(f"Initialized transport for {self.base_url} "
                     f"(timeout {self.timeout_seconds}s, {self.retries} retries)")

    def close(self):
        """Close the session and release pooled connections."""
        if self.session:
            self.session.close()

    def request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None,
                headers: Optional[Dict[str, str]] = None) -> TransportResponse:
        """
        Send a request, retrying only when no response was received.

        Args:
            method: HTTP method
            path: Path below the base URL, already URL-encoded
            body: Optional JSON body
            headers: Optional extra headers

        Returns:
            TransportResponse for any received status code, including errors

        Raises:
            MnemeSyncUnreachableError: If every attempt failed at the network level
            MnemeSyncResponseTooLargeError: If the body exceeds the cap
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.retries + 1):
            try:
                return self._single_request(method, path, body, dict(headers or {}))
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < self.retries:
                    delay = self.backoff_seconds * (2 ** attempt)
                    logger.debug(f"{method} {path} failed ({e}); retry {attempt + 1}/{self.retries} in {delay}s")
                    self._sleep(delay)
            except requests.exceptions.RequestException as e:
                # Invalid URL and similar: retrying cannot help
                raise MnemeSyncUnreachableError(f"Request error: {e}") from e

        logger.warning(f"{method} {path} failed after {self.retries + 1} attempts: {last_error}")
        raise MnemeSyncUnreachableError(
            f"Cannot reach coordinator at {self.base_url}: {last_error}"
        ) from last_error

    def _single_request(self, method: str, path: str, body: Optional[Dict[str, Any]],
                        headers: Dict[str, str]) -> TransportResponse:
        url = f"{self.base_url}{path}"

        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        kwargs: Dict[str, Any] = {"timeout": self.timeout_seconds, "stream": True}
        if body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(body).encode('utf-8')

        response = self.session.request(method, url, headers=headers, **kwargs)
        try:
            raw = self._read_capped(response)
        finally:
            response.close()

        return TransportResponse(status=response.status_code, data=self._decode(raw))

    def _read_capped(self, response: requests.Response) -> bytes:
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self.max_response_bytes:
            raise MnemeSyncResponseTooLargeError(self.max_response_bytes)

        chunks = []
        total = 0
        for chunk in response.iter_content(chunk_size=65536):
            if not chunk:
                continue
            total += len(chunk)
            if total > self.max_response_bytes:
                raise MnemeSyncResponseTooLargeError(self.max_response_bytes)
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _decode(raw: bytes) -> Dict[str, Any]:
        if not raw:
            return {}
        text = raw.decode('utf-8', errors='replace')
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return {"raw": text}
        return parsed if isinstance(parsed, dict) else {"raw": parsed}
