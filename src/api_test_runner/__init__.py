"""
API Test Runner - sequential HTTP API test runs with assertions and
variable chaining.
"""

__version__ = "0.1.0"
