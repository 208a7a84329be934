"""
Typed response assertions and their evaluation.

Each assertion variant is its own dataclass carrying only the fields that are
meaningful for it. Absent optional fields fall back to the defaults of the
variant (status 200, range 200-299, response time 5000ms).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from .exceptions import ConfigurationError, QueryError
from .path_query import evaluate as evaluate_path
from .path_query import value_to_string

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_STATUS = 200
DEFAULT_MIN_STATUS = 200
DEFAULT_MAX_STATUS = 299
DEFAULT_MAX_TIME_MS = 5000
DEFAULT_JSON_PATH = "$"

DEFAULT_ASSERTION_NAME = "Status code is successful (< 400)"


class JsonPathOperator(Enum):
    """Comparison applied to the value selected by a JSONPath assertion."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"

    @property
    def label(self) -> str:
        """Display form used in assertion names, e.g. ``NotEquals``."""
        return "".join(part.capitalize() for part in self.value.split("_"))


@dataclass
class AssertionResult:
    """Outcome of one assertion, with display strings."""

    name: str
    passed: bool
    expected: str
    actual: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "expected": self.expected,
            "actual": self.actual,
        }


def _optional_int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Assertion field '{key}' must be an integer, got: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Assertion field '{key}' must be an integer, got: {value!r}")


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value)


@dataclass
class Assertion(ABC):
    """Base class for a configured check against one HTTP response."""

    id: str = ""
    enabled: bool = True

    type_name: ClassVar[str] = ""

    @abstractmethod
    def evaluate(
        self,
        status: int,
        elapsed_ms: int,
        body: str,
        headers: Mapping[str, str],
    ) -> AssertionResult:
        """
        Evaluate the assertion against an observed response.

        Args:
            status: Response status code
            elapsed_ms: Response time in milliseconds
            body: Response body text
            headers: Response headers

        Returns:
            AssertionResult with verdict and display strings
        """
        pass

    @classmethod
    @abstractmethod
    def _fields_from_dict(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Read the variant-specific fields from wire form."""
        pass

    @abstractmethod
    def _fields_to_dict(self) -> Dict[str, Any]:
        """Write the variant-specific fields in wire form."""
        pass

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Assertion":
        return cls(
            id=str(data.get("id", "")),
            enabled=data.get("enabled") is not False,
            **cls._fields_from_dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "type": self.type_name, "enabled": self.enabled}
        result.update({k: v for k, v in self._fields_to_dict().items() if v is not None})
        return result


@dataclass
class StatusAssertion(Assertion):
    """Response status equals an expected code."""

    expected_status: Optional[int] = None

    type_name: ClassVar[str] = "status"

    def evaluate(self, status, elapsed_ms, body, headers) -> AssertionResult:
        expected = (
            self.expected_status if self.expected_status is not None else DEFAULT_EXPECTED_STATUS
        )
        return AssertionResult(
            name=f"Status code equals {expected}",
            passed=status == expected,
            expected=str(expected),
            actual=str(status),
        )

    @classmethod
    def _fields_from_dict(cls, data):
        return {"expected_status": _optional_int(data, "expectedStatus")}

    def _fields_to_dict(self):
        return {"expectedStatus": self.expected_status}


@dataclass
class StatusRangeAssertion(Assertion):
    """Response status lies within an inclusive range."""

    min_status: Optional[int] = None
    max_status: Optional[int] = None

    type_name: ClassVar[str] = "status_range"

    def evaluate(self, status, elapsed_ms, body, headers) -> AssertionResult:
        low = self.min_status if self.min_status is not None else DEFAULT_MIN_STATUS
        high = self.max_status if self.max_status is not None else DEFAULT_MAX_STATUS
        return AssertionResult(
            name=f"Status code in range {low}-{high}",
            passed=low <= status <= high,
            expected=f"{low}-{high}",
            actual=str(status),
        )

    @classmethod
    def _fields_from_dict(cls, data):
        return {
            "min_status": _optional_int(data, "minStatus"),
            "max_status": _optional_int(data, "maxStatus"),
        }

    def _fields_to_dict(self):
        return {"minStatus": self.min_status, "maxStatus": self.max_status}


@dataclass
class JsonPathAssertion(Assertion):
    """Value selected from a JSON body by a JSONPath expression."""

    json_path: Optional[str] = None
    operator: Optional[JsonPathOperator] = None
    expected_value: Optional[str] = None

    type_name: ClassVar[str] = "jsonpath"

    def evaluate(self, status, elapsed_ms, body, headers) -> AssertionResult:
        path = self.json_path if self.json_path is not None else DEFAULT_JSON_PATH
        operator = self.operator or JsonPathOperator.EXISTS
        expected_value = self.expected_value if self.expected_value is not None else ""

        try:
            actual_value = evaluate_path(body, path)
        except QueryError as e:
            logger.debug("JSONPath assertion on %s failed to evaluate: %s", path, e)
            return AssertionResult(
                name=f"JSONPath {path}",
                passed=False,
                expected=expected_value,
                actual=f"Error: {e}",
            )

        actual = value_to_string(actual_value)
        if operator == JsonPathOperator.EQUALS:
            passed = actual == expected_value
        elif operator == JsonPathOperator.NOT_EQUALS:
            passed = actual != expected_value
        elif operator == JsonPathOperator.CONTAINS:
            passed = expected_value in actual
        elif operator == JsonPathOperator.EXISTS:
            passed = actual_value is not None
        else:
            passed = actual_value is None

        if operator == JsonPathOperator.EXISTS:
            expected = "exists"
        elif operator == JsonPathOperator.NOT_EXISTS:
            expected = "not exists"
        else:
            expected = expected_value

        return AssertionResult(
            name=f"JSONPath {path} {operator.label}",
            passed=passed,
            expected=expected,
            actual=actual,
        )

    @classmethod
    def _fields_from_dict(cls, data):
        operator = data.get("operator")
        if operator is not None:
            try:
                operator = JsonPathOperator(operator)
            except ValueError:
                raise ConfigurationError(f"Unknown JSONPath operator: {operator!r}")
        return {
            "json_path": _optional_str(data, "jsonPath"),
            "operator": operator,
            "expected_value": _optional_str(data, "expectedValue"),
        }

    def _fields_to_dict(self):
        return {
            "jsonPath": self.json_path,
            "operator": self.operator.value if self.operator else None,
            "expectedValue": self.expected_value,
        }


@dataclass
class ContainsAssertion(Assertion):
    """Response body contains a literal, case-sensitive substring."""

    search_string: Optional[str] = None

    type_name: ClassVar[str] = "contains"

    def evaluate(self, status, elapsed_ms, body, headers) -> AssertionResult:
        search = self.search_string or ""
        passed = search in body
        return AssertionResult(
            name=f"Response contains '{search}'",
            passed=passed,
            expected=f"contains '{search}'",
            actual="found" if passed else "not found",
        )

    @classmethod
    def _fields_from_dict(cls, data):
        return {"search_string": _optional_str(data, "searchString")}

    def _fields_to_dict(self):
        return {"searchString": self.search_string}


@dataclass
class ResponseTimeAssertion(Assertion):
    """Response arrived within a time budget."""

    max_time_ms: Optional[int] = None

    type_name: ClassVar[str] = "response_time"

    def evaluate(self, status, elapsed_ms, body, headers) -> AssertionResult:
        max_time = self.max_time_ms if self.max_time_ms is not None else DEFAULT_MAX_TIME_MS
        return AssertionResult(
            name=f"Response time < {max_time}ms",
            passed=elapsed_ms <= max_time,
            expected=f"< {max_time}ms",
            actual=f"{elapsed_ms}ms",
        )

    @classmethod
    def _fields_from_dict(cls, data):
        return {"max_time_ms": _optional_int(data, "maxTimeMs")}

    def _fields_to_dict(self):
        return {"maxTimeMs": self.max_time_ms}


@dataclass
class HeaderAssertion(Assertion):
    """Response header exists, optionally with an exact value."""

    header_name: Optional[str] = None
    header_value: Optional[str] = None

    type_name: ClassVar[str] = "header"

    def evaluate(self, status, elapsed_ms, body, headers) -> AssertionResult:
        name = self.header_name or ""
        wanted = name.lower()
        actual_value = next((v for k, v in headers.items() if k.lower() == wanted), None)

        if self.header_value is not None:
            expected = self.header_value
            passed = actual_value is not None and actual_value == self.header_value
        else:
            expected = "exists"
            passed = actual_value is not None

        return AssertionResult(
            name=f"Header '{name}'",
            passed=passed,
            expected=expected,
            actual=actual_value if actual_value is not None else "header not found",
        )

    @classmethod
    def _fields_from_dict(cls, data):
        return {
            "header_name": _optional_str(data, "headerName"),
            "header_value": _optional_str(data, "headerValue"),
        }

    def _fields_to_dict(self):
        return {"headerName": self.header_name, "headerValue": self.header_value}


ASSERTION_TYPES: Dict[str, Type[Assertion]] = {
    cls.type_name: cls
    for cls in (
        StatusAssertion,
        StatusRangeAssertion,
        JsonPathAssertion,
        ContainsAssertion,
        ResponseTimeAssertion,
        HeaderAssertion,
    )
}


def parse_assertion(data: Mapping[str, Any]) -> Assertion:
    """
    Build an assertion from its wire form.

    Args:
        data: Dictionary with a ``type`` key and camelCase variant fields

    Returns:
        The matching Assertion variant

    Raises:
        ConfigurationError: On an unknown type or malformed field
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Assertion must be a mapping, got: {data!r}")
    type_name = data.get("type")
    assertion_cls = ASSERTION_TYPES.get(type_name)
    if assertion_cls is None:
        raise ConfigurationError(
            f"Unknown assertion type: {type_name!r}. "
            f"Expected one of: {', '.join(ASSERTION_TYPES)}"
        )
    return assertion_cls.from_dict(data)


def evaluate_assertion(
    assertion: Assertion,
    status: int,
    elapsed_ms: int,
    body: str,
    headers: Mapping[str, str],
) -> AssertionResult:
    """Evaluate one assertion against an observed response."""
    return assertion.evaluate(status, elapsed_ms, body, headers)


def default_status_assertion(status: int) -> AssertionResult:
    """Assertion synthesized when a request has no enabled assertions."""
    return AssertionResult(
        name=DEFAULT_ASSERTION_NAME,
        passed=status < 400,
        expected="< 400",
        actual=str(status),
    )
