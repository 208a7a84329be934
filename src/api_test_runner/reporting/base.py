"""
Base class for report generators.
"""

from abc import ABC, abstractmethod

from ..models import TestRunSummary


class ReportGenerator(ABC):
    """Base class for generating test run reports."""

    @abstractmethod
    def generate(self, summary: TestRunSummary) -> str:
        """
        Generate a report from a test run.

        Args:
            summary: TestRunSummary with per-request results

        Returns:
            Report as a string
        """
        pass
