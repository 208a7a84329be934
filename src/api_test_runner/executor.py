"""
Execution of a single test request.
"""

import logging
import time
from typing import List, Mapping, Optional, Tuple
from urllib.parse import quote

from requests.structures import CaseInsensitiveDict

from .assertions import AssertionResult, default_status_assertion, evaluate_assertion
from .client import HttpClient
from .exceptions import TransportError
from .extraction import extract_variables
from .models import KeyValue, TestRequest, TestResult, TestStatus
from .substitution import substitute

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

BODY_CONTENT_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "html": "text/html",
}


def _enabled_pairs(
    entries: List[KeyValue], context: Mapping[str, str]
) -> List[Tuple[str, str]]:
    return [
        (substitute(entry.key, context), substitute(entry.value, context))
        for entry in entries
        if entry.enabled and entry.key
    ]


def build_url(request: TestRequest, context: Mapping[str, str]) -> str:
    """
    Build the final request URL with variables substituted and enabled
    query parameters appended.

    Args:
        request: Request to build the URL for
        context: Current run variables

    Returns:
        URL as it will be sent
    """
    url = substitute(request.url, context)
    params = _enabled_pairs(request.params, context)
    if not params:
        return url

    query_string = "&".join(f"{quote(k, safe='')}={quote(v, safe='')}" for k, v in params)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query_string}"


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


class RequestExecutor:
    """Executes one TestRequest against the network and evaluates it."""

    def __init__(self, http: HttpClient):
        self.http = http

    def execute(self, request: TestRequest, context: Mapping[str, str]) -> TestResult:
        """
        Execute a request with the current run variables.

        Transport failures and unsupported methods are reported as an
        ``error`` result; assertion failures as ``failed``. Nothing is raised
        for per-request problems and nothing is retried.

        Args:
            request: Request to execute
            context: Current run variables (read only)

        Returns:
            TestResult for the request
        """
        url = build_url(request, context)

        method = request.method.upper()
        if method not in SUPPORTED_METHODS:
            logger.warning("Request '%s' uses unsupported method %s", request.name, request.method)
            return self._error_result(request, url, f"Unsupported method: {request.method}")

        headers: CaseInsensitiveDict = CaseInsensitiveDict()
        for key, value in _enabled_pairs(request.headers, context):
            headers[key] = value

        body: Optional[bytes] = None
        if request.body:
            content_type = BODY_CONTENT_TYPES.get(request.body_type)
            if content_type:
                headers["Content-Type"] = content_type
            body = substitute(request.body, context).encode("utf-8")

        logger.debug("Executing request '%s': %s %s", request.name, method, url)
        start_time = time.perf_counter()
        try:
            response = self.http.send(method, url, headers=headers, body=body)
        except TransportError as e:
            return self._error_result(request, url, str(e), response_time=_elapsed_ms(start_time))
        elapsed_ms = _elapsed_ms(start_time)

        body_text = response.content.decode("utf-8", errors="replace")

        assertions: List[AssertionResult] = [
            evaluate_assertion(a, response.status_code, elapsed_ms, body_text, response.headers)
            for a in request.assertions or []
            if a.enabled
        ]
        if not assertions:
            assertions.append(default_status_assertion(response.status_code))

        extracted = None
        if request.extract_variables:
            extracted = extract_variables(request.extract_variables, body_text)

        status = TestStatus.PASSED if all(a.passed for a in assertions) else TestStatus.FAILED
        logger.debug(
            "Request '%s' returned %d in %dms: %s",
            request.name,
            response.status_code,
            elapsed_ms,
            status.value,
        )

        return TestResult(
            request_id=request.id,
            request_name=request.name,
            method=request.method,
            url=url,
            status=status,
            response_status=response.status_code,
            response_time=elapsed_ms,
            response_size=len(response.content),
            response_body=body_text,
            response_headers=response.headers,
            assertions=assertions,
            extracted_variables=extracted,
        )

    def _error_result(
        self,
        request: TestRequest,
        url: str,
        error: str,
        response_time: Optional[int] = None,
    ) -> TestResult:
        return TestResult(
            request_id=request.id,
            request_name=request.name,
            method=request.method,
            url=url,
            status=TestStatus.ERROR,
            response_time=response_time,
            error=error,
        )
