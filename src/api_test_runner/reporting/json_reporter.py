"""
JSON reporter for test run results.
"""

import json

from ..models import TestRunSummary
from .base import ReportGenerator


class JSONReporter(ReportGenerator):
    """Generate JSON in the same camelCase shape the run API returns."""

    def generate(self, summary: TestRunSummary) -> str:
        """Generate JSON report."""
        report = summary.to_dict()
        report["success"] = summary.success
        return json.dumps(report, indent=2, ensure_ascii=False)
