"""
Test runner orchestrating sequential execution of test requests.
"""

import logging
import time
import uuid
from contextlib import nullcontext
from typing import ContextManager, Dict, Iterator, List, Optional, Union

from .client import HttpClient
from .config import RunnerConfig
from .executor import RequestExecutor
from .models import (
    RunTestsRequest,
    TestCompleteEvent,
    TestProgressEvent,
    TestResult,
    TestRunSummary,
    TestStartEvent,
    TestStatus,
)

logger = logging.getLogger(__name__)

RunEvent = Union[TestStartEvent, TestProgressEvent, TestCompleteEvent]


class TestRunner:
    """
    Runs the requests of a test run strictly one after another.

    Variables extracted from one response are visible to every later request
    of the same run, which is why requests are never executed concurrently.
    """

    def __init__(self, config: Optional[RunnerConfig] = None, http: Optional[HttpClient] = None):
        """
        Initialize the runner.

        Args:
            config: Runner configuration (timeouts, TLS verification)
            http: HTTP client to use instead of creating one per run. The
                caller keeps ownership of an injected client.
        """
        self.config = config or RunnerConfig()
        self._http = http

    def _open_client(self) -> ContextManager[HttpClient]:
        if self._http is not None:
            return nullcontext(self._http)
        return HttpClient(
            timeout=self.config.timeout_seconds,
            verify_tls=self.config.verify_tls,
        )

    def run(self, run_request: RunTestsRequest) -> TestRunSummary:
        """
        Run all requests and return the summary.

        Args:
            run_request: Requests and run options

        Returns:
            TestRunSummary with one result per executed request
        """
        summary = None
        for event in self.stream(run_request):
            if isinstance(event, TestCompleteEvent):
                summary = event.summary
        return summary

    def stream(self, run_request: RunTestsRequest) -> Iterator[RunEvent]:
        """
        Run all requests, yielding events as the run progresses.

        Yields a TestStartEvent, one TestProgressEvent per executed request
        (including the one that stopped the run early) and a final
        TestCompleteEvent. Closing the iterator stops the run before the next
        request and releases the HTTP session.

        Args:
            run_request: Requests and run options

        Yields:
            Run events in order
        """
        run_id = str(uuid.uuid4())
        requests = run_request.requests
        total = len(requests)
        delay_ms = run_request.delay_between_requests

        context: Dict[str, str] = dict(run_request.variables)
        results: List[TestResult] = []
        passed = failed = errors = 0

        logger.info(
            "Starting test run '%s' (%s) with %d request(s)", run_request.name, run_id, total
        )
        start_time = time.perf_counter()
        yield TestStartEvent(run_id=run_id, name=run_request.name, total=total)

        with self._open_client() as http:
            executor = RequestExecutor(http)
            for index, request in enumerate(requests):
                result = executor.execute(request, context)

                # Failed extractions never overwrite existing variables
                for variable in result.extracted_variables or []:
                    if variable.success:
                        context[variable.variable_name] = variable.value

                if result.status == TestStatus.PASSED:
                    passed += 1
                elif result.status == TestStatus.FAILED:
                    failed += 1
                elif result.status == TestStatus.ERROR:
                    errors += 1

                results.append(result)
                yield TestProgressEvent(index=index + 1, total=total, result=result)

                if run_request.stop_on_failure and result.status in (
                    TestStatus.FAILED,
                    TestStatus.ERROR,
                ):
                    logger.info(
                        "Stopping run %s after '%s' (%s)",
                        run_id,
                        request.name,
                        result.status.value,
                    )
                    break

                if delay_ms > 0 and index < total - 1:
                    time.sleep(delay_ms / 1000.0)

        summary = TestRunSummary(
            run_id=run_id,
            name=run_request.name,
            total=total,
            passed=passed,
            failed=failed,
            errors=errors,
            total_time=int((time.perf_counter() - start_time) * 1000),
            results=results,
        )
        logger.info(
            "Test run %s complete: %d passed, %d failed, %d errors in %dms",
            run_id,
            passed,
            failed,
            errors,
            summary.total_time,
        )
        yield TestCompleteEvent(summary=summary)
