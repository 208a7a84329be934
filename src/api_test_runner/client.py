"""
HTTP client used by the request executor to send test requests.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.exceptions import ConnectionError, Timeout
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from .exceptions import ConnectionFailedError, RequestTimeoutError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


@dataclass
class HttpResponse:
    """Raw response of one HTTP call."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""


class HttpClient:
    """
    HTTP client for sending test requests.

    Every request is attempted exactly once: no retry strategy is mounted, so
    a failed request is reported to the caller as-is.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        verify_tls: bool = False,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            verify_tls: Whether to validate TLS certificates. Disabled by
                default so self-signed development endpoints can be tested.
        """
        self.timeout = timeout
        self.verify_tls = verify_tls

        # Create session with connection pooling
        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=Retry(0, read=False))
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.verify = verify_tls

        if not verify_tls:
            urllib3.disable_warnings(InsecureRequestWarning)

    def send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> HttpResponse:
        """
        Send one HTTP request.

        Args:
            method: HTTP method (GET, POST, ...)
            url: Absolute URL including any query string
            headers: Request headers
            body: Raw request body, sent verbatim

        Returns:
            HttpResponse with status, headers and body bytes. HTTP error
            statuses are returned, not raised.

        Raises:
            RequestTimeoutError: On timeout
            ConnectionFailedError: On connection, DNS or TLS errors
            TransportError: On any other failure to obtain a response
        """
        logger.debug("Sending %s request to %s", method, url)

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                data=body,
                timeout=self.timeout,
                verify=self.verify_tls,
            )
        except Timeout as e:
            logger.warning("Request to %s timed out after %ss", url, self.timeout)
            raise RequestTimeoutError(url, e) from e
        except ConnectionError as e:
            logger.warning("Connection failed to %s: %s", url, e)
            raise ConnectionFailedError(url, e) from e
        except requests.RequestException as e:
            logger.warning("Request failed for %s: %s", url, e)
            raise TransportError(url, e) from e
        except (ValueError, UnicodeError) as e:
            # Header names or values http.client refuses to encode
            logger.warning("Request to %s could not be built: %s", url, e)
            raise TransportError(url, e) from e

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> "HttpClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()
