"""
Authenticated HTTP request executor for the MemoryRelay API.
"""

import asyncio
import logging
import math
from typing import Any, Optional

import httpx

from .. import __version__
from .config import ClientConfig
from .errors import NetworkError, RateLimitError, RequestTimeoutError, error_for_status
from .logging_config import get_logger
from .redaction import redact
from .retry import with_retry

logger = get_logger(__name__)

USER_AGENT = f'memoryrelay-mcp/{__version__}'
RATE_LIMIT_FALLBACK_SECONDS = 5.0


def parse_retry_after(value: Optional[str]) -> float:
    """Seconds to wait from a Retry-After header, falling back to 5s when absent or unparsable."""
    if value is None:
        return RATE_LIMIT_FALLBACK_SECONDS
    try:
        seconds = float(value.strip())
    except ValueError:
        return RATE_LIMIT_FALLBACK_SECONDS
    if not math.isfinite(seconds) or seconds < 0:
        return RATE_LIMIT_FALLBACK_SECONDS
    return seconds


class MemoryRelayAPIClient:
    """Sends single authenticated requests to the MemoryRelay API and classifies the outcome."""

    def __init__(self,
                 config: ClientConfig,
                 log: Optional[logging.Logger] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the API client.

        Args:
            config: ClientConfig with key, base URL, agent ID and timeout
            log: Logger to use (defaults to this module's logger)
            transport: Optional httpx transport, used by tests to fake the server
        """
        self.config = config
        self.logger = log or logger
        self._http = httpx.AsyncClient(headers={
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {config.api_key}',
            'User-Agent': USER_AGENT,
        },
                                       timeout=httpx.Timeout(config.timeout_seconds),
                                       transport=transport)

        self.logger.info(f'MemoryRelay client initialized (api_url={config.api_url}, agent_id={config.agent_id})')

    async def __aenter__(self) -> 'MemoryRelayAPIClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _sanitize(self, message: str) -> str:
        return redact(message, self.config.api_key)

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """
        Perform one request attempt. Retrying is the caller's job.

        Args:
            method: HTTP method
            path: Path appended to the configured base URL, including any query string
            body: JSON-serializable request body, if any

        Returns:
            The parsed JSON response body, or None for an empty body

        Raises:
            RequestTimeoutError: If no response arrives within the configured timeout
            RateLimitError: On 429, after waiting out the Retry-After hint
            APIError: On any other non-success status (typed by status code)
            NetworkError: On transport failures or an unparsable success body
        """
        url = f'{self.config.api_url}{path}'
        self.logger.debug(f'API request: {method} {path}')

        # Exceptions are re-raised "from None" so unredacted causes never reach a traceback
        try:
            response = await asyncio.wait_for(self._http.request(method, url, json=body),
                                              timeout=self.config.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise RequestTimeoutError(f'Request timeout after {self.config.timeout}ms',
                                      timeout_ms=self.config.timeout) from None
        except httpx.HTTPError as e:
            raise NetworkError(self._sanitize(f'Network error: {type(e).__name__}: {e}')) from None

        if response.status_code == 429:
            wait = parse_retry_after(response.headers.get('Retry-After'))
            wait_ms = int(wait * 1000)
            self.logger.warning(f'Rate limited, waiting {wait_ms}ms')
            await asyncio.sleep(wait)
            raise RateLimitError(f'Rate limited: 429 - Retry after {wait_ms}ms', retry_after=wait)

        if not response.is_success:
            message = None
            try:
                error_data = response.json()
                if isinstance(error_data, dict):
                    message = error_data.get('message')
            except ValueError:
                pass

            error_msg = f'API request failed: {response.status_code} {response.reason_phrase}'
            if message:
                error_msg += f' - {message}'
            raise error_for_status(response.status_code, self._sanitize(error_msg))

        self.logger.debug(f'API response: {method} {path} ({response.status_code})')

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise NetworkError(f'Invalid JSON in API response: {method} {path}') from None

    async def request_with_retry(self, method: str, path: str, body: Any = None) -> Any:
        """Perform a request under the retry policy configured for this client."""
        return await with_retry(lambda: self.request(method, path, body),
                                max_attempts=self.config.retry_attempts,
                                initial_delay=self.config.retry_delay,
                                log=self.logger)
