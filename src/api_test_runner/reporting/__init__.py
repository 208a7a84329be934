"""
Reporting modules for the API test runner.
"""

from .base import ReportGenerator
from .console import ConsoleReporter
from .json_reporter import JSONReporter
from .junit import JUnitReporter

__all__ = ["ReportGenerator", "ConsoleReporter", "JSONReporter", "JUnitReporter", "get_reporter"]


def get_reporter(report_format: str) -> ReportGenerator:
    """Return the report generator for a configured report format."""
    if report_format == "junit":
        return JUnitReporter()
    if report_format == "json":
        return JSONReporter()
    return ConsoleReporter()
