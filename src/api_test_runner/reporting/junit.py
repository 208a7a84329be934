"""
JUnit XML reporter for test run results.
"""

import xml.etree.ElementTree as ET

from ..models import TestRunSummary, TestStatus
from .base import ReportGenerator


class JUnitReporter(ReportGenerator):
    """Generate JUnit XML format for CI/CD integration."""

    def generate(self, summary: TestRunSummary) -> str:
        """Generate JUnit XML report."""
        testsuite = ET.Element("testsuite")
        testsuite.set("name", summary.name)
        testsuite.set("tests", str(len(summary.results)))
        testsuite.set("failures", str(summary.failed))
        testsuite.set("errors", str(summary.errors))
        # Requests not reached after a stop-on-failure
        testsuite.set("skipped", str(summary.total - len(summary.results)))
        testsuite.set("time", f"{summary.total_time / 1000:.3f}")

        for result in summary.results:
            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", result.request_name)
            testcase.set("classname", f"{result.method} {result.url}")
            testcase.set("time", f"{(result.response_time or 0) / 1000:.3f}")

            if result.status == TestStatus.FAILED:
                failed = [a for a in result.assertions if not a.passed]
                failure = ET.SubElement(testcase, "failure")
                failure.set("message", failed[0].name if failed else "Assertion failed")
                failure.text = "\n".join(
                    f"{a.name}: expected {a.expected}, got {a.actual}" for a in failed
                )

            elif result.status == TestStatus.ERROR:
                error = ET.SubElement(testcase, "error")
                error.set("message", result.error or "Request error")
                error.text = result.error or ""

        ET.indent(testsuite, space="  ")
        return ET.tostring(testsuite, encoding="unicode", xml_declaration=True)
