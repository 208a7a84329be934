"""
Console reporter for test run results.
"""

import os
import sys

from ..models import TestResult, TestRunSummary, TestStatus
from .base import ReportGenerator


def _supports_color() -> bool:
    """Return True if the output stream likely supports ANSI colours."""
    # Explicit opt-in / opt-out via environment variable
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    # Non-TTY output (e.g. piped to a file) should not use colour
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    return sys.platform != "win32" or "WT_SESSION" in os.environ


class ConsoleReporter(ReportGenerator):
    """Generate colored console output for test run results."""

    def __init__(self) -> None:
        color = _supports_color()
        self.GREEN = "\033[92m" if color else ""
        self.RED = "\033[91m" if color else ""
        self.YELLOW = "\033[93m" if color else ""
        self.RESET = "\033[0m" if color else ""
        self.BOLD = "\033[1m" if color else ""

    def _symbol(self, status: TestStatus) -> str:
        if status == TestStatus.PASSED:
            return f"{self.GREEN}✓{self.RESET}"
        return f"{self.RED}✗{self.RESET}"

    def format_result(self, result: TestResult) -> str:
        """One-line description of a request outcome."""
        if result.response_status is not None:
            outcome = f"{result.response_status}, {result.response_time}ms"
        else:
            outcome = result.status.value
        return (
            f"{self._symbol(result.status)} {result.request_name} "
            f"[{result.method} {result.url}] ({outcome})"
        )

    def generate(self, summary: TestRunSummary) -> str:
        """Generate console report."""
        lines = []

        # Header
        lines.append(f"\n{self.BOLD}API Test Results: {summary.name}{self.RESET}")
        lines.append("=" * 60)

        # Summary statistics
        lines.append(f"\n{self.BOLD}Summary:{self.RESET}")
        lines.append(f"  Total Requests: {summary.total}")
        lines.append(f"  {self.GREEN}Passed: {summary.passed}{self.RESET}")
        lines.append(f"  {self.RED}Failed: {summary.failed}{self.RESET}")
        lines.append(f"  {self.RED}Errors: {summary.errors}{self.RESET}")
        not_run = summary.total - len(summary.results)
        if not_run:
            lines.append(f"  {self.YELLOW}Not run: {not_run}{self.RESET}")
        lines.append(f"  Duration: {summary.total_time}ms")

        # Overall status
        if summary.success:
            lines.append(f"\n{self.GREEN}{self.BOLD}✓ ALL TESTS PASSED{self.RESET}")
        else:
            lines.append(f"\n{self.RED}{self.BOLD}✗ TESTS FAILED{self.RESET}")

        failed_results = [
            r for r in summary.results if r.status in (TestStatus.FAILED, TestStatus.ERROR)
        ]
        if failed_results:
            lines.append(f"\n{self.BOLD}Failed Requests:{self.RESET}")
            for result in failed_results:
                lines.append(f"\n  {self.RED}✗ {result.request_name}{self.RESET}")
                lines.append(f"    {result.method} {result.url}")
                if result.error:
                    lines.append(f"    Error: {result.error}")
                for assertion in result.assertions:
                    if not assertion.passed:
                        lines.append(
                            f"    {assertion.name}: expected {assertion.expected}, "
                            f"got {assertion.actual}"
                        )

        lines.append(f"\n{self.BOLD}All Requests:{self.RESET}")
        for result in summary.results:
            lines.append(f"  {self.format_result(result)}")

        lines.append("")  # Empty line at end
        return "\n".join(lines)
