"""
Data models for the API test runner.

Wire form (``to_dict``/``from_dict``) uses the camelCase keys that the
surrounding application stores and transmits.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .assertions import Assertion, AssertionResult, parse_assertion
from .exceptions import ConfigurationError


class TestStatus(Enum):
    """Status of a request within a test run."""

    # Pending and running are only used by UIs tracking a live run.
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


def _require_mapping(data: Any, kind: str) -> None:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{kind} must be a mapping, got: {data!r}")


def _require_str(data: Mapping[str, Any], key: str, kind: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ConfigurationError(f"{kind} is missing required string field '{key}'")
    return value


def _parse_list(data: Mapping[str, Any], key: str, kind: str) -> Optional[List[Any]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError(f"{kind} field '{key}' must be a list")
    return value


@dataclass
class KeyValue:
    """Header or query parameter entry."""

    key: str
    value: str = ""
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyValue":
        _require_mapping(data, "Key/value entry")
        value = data.get("value")
        return cls(
            key=_require_str(data, "key", "Key/value entry"),
            value="" if value is None else str(value),
            enabled=data.get("enabled") is not False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "value": self.value, "enabled": self.enabled}


@dataclass
class VariableExtraction:
    """Rule storing a JSONPath result from a response as a run variable."""

    variable_name: str
    json_path: str
    id: str = ""
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VariableExtraction":
        _require_mapping(data, "Variable extraction")
        return cls(
            id=str(data.get("id", "")),
            variable_name=_require_str(data, "variableName", "Variable extraction"),
            json_path=_require_str(data, "jsonPath", "Variable extraction"),
            enabled=data.get("enabled") is not False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "variableName": self.variable_name,
            "jsonPath": self.json_path,
            "enabled": self.enabled,
        }


@dataclass
class ExtractedVariable:
    """Outcome of one variable extraction rule."""

    variable_name: str
    json_path: str
    value: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "variableName": self.variable_name,
            "jsonPath": self.json_path,
            "value": self.value,
            "success": self.success,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class TestRequest:
    """One HTTP call of a test run."""

    id: str
    name: str
    method: str
    url: str
    headers: List[KeyValue] = field(default_factory=list)
    params: List[KeyValue] = field(default_factory=list)
    body: Optional[str] = None
    body_type: str = "none"
    assertions: Optional[List[Assertion]] = None
    extract_variables: Optional[List[VariableExtraction]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestRequest":
        """
        Build a request from its wire form.

        Raises:
            ConfigurationError: If a required field is missing or malformed
        """
        _require_mapping(data, "Request")
        kind = f"Request '{data.get('name', data.get('id', '?'))}'"
        assertions = _parse_list(data, "assertions", kind)
        extractions = _parse_list(data, "extractVariables", kind)
        body = data.get("body")
        return cls(
            id=_require_str(data, "id", kind),
            name=_require_str(data, "name", kind),
            method=_require_str(data, "method", kind),
            url=_require_str(data, "url", kind),
            headers=[KeyValue.from_dict(h) for h in _parse_list(data, "headers", kind) or []],
            params=[KeyValue.from_dict(p) for p in _parse_list(data, "params", kind) or []],
            body=body if isinstance(body, str) else None,
            body_type=data.get("bodyType") or "none",
            assertions=(
                [parse_assertion(a) for a in assertions] if assertions is not None else None
            ),
            extract_variables=(
                [VariableExtraction.from_dict(e) for e in extractions]
                if extractions is not None
                else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "method": self.method,
            "url": self.url,
            "headers": [h.to_dict() for h in self.headers],
            "params": [p.to_dict() for p in self.params],
            "bodyType": self.body_type,
        }
        if self.body is not None:
            result["body"] = self.body
        if self.assertions is not None:
            result["assertions"] = [a.to_dict() for a in self.assertions]
        if self.extract_variables is not None:
            result["extractVariables"] = [e.to_dict() for e in self.extract_variables]
        return result


@dataclass
class TestResult:
    """Outcome of executing one TestRequest."""

    request_id: str
    request_name: str
    method: str
    url: str
    status: TestStatus
    response_status: Optional[int] = None
    response_time: Optional[int] = None
    response_size: Optional[int] = None
    response_body: Optional[str] = None
    response_headers: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    assertions: List[AssertionResult] = field(default_factory=list)
    extracted_variables: Optional[List[ExtractedVariable]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "requestId": self.request_id,
            "requestName": self.request_name,
            "method": self.method,
            "url": self.url,
            "status": self.status.value,
        }
        optional = {
            "responseStatus": self.response_status,
            "responseTime": self.response_time,
            "responseSize": self.response_size,
            "responseBody": self.response_body,
            "responseHeaders": self.response_headers,
            "error": self.error,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        result["assertions"] = [a.to_dict() for a in self.assertions]
        if self.extracted_variables is not None:
            result["extractedVariables"] = [v.to_dict() for v in self.extracted_variables]
        return result


@dataclass
class TestRunSummary:
    """Aggregated outcome of a test run."""

    run_id: str
    name: str
    total: int
    passed: int
    failed: int
    errors: int
    total_time: int
    results: List[TestResult]

    @property
    def success(self) -> bool:
        """Return True if no request failed or errored."""
        return self.failed == 0 and self.errors == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "name": self.name,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "totalTime": self.total_time,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class TestStartEvent:
    """Emitted once before the first request of a streamed run."""

    run_id: str
    name: str
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "start", "runId": self.run_id, "name": self.name, "total": self.total}


@dataclass
class TestProgressEvent:
    """Emitted after each executed request of a streamed run."""

    index: int
    total: int
    result: TestResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "progress",
            "index": self.index,
            "total": self.total,
            "result": self.result.to_dict(),
        }


@dataclass
class TestCompleteEvent:
    """Emitted once when a streamed run finishes."""

    summary: TestRunSummary

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "complete", "summary": self.summary.to_dict()}


def _parse_variables(data: Mapping[str, Any], kind: str) -> Dict[str, str]:
    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        raise ConfigurationError(f"{kind} field 'variables' must be a mapping")
    return {str(k): str(v) for k, v in variables.items()}


def _parse_stop_on_failure(data: Mapping[str, Any], kind: str) -> bool:
    value = data.get("stopOnFailure", False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigurationError(
            f"{kind} field 'stopOnFailure' must be true or false, got: {value!r}"
        )
    return value


def _parse_delay(data: Mapping[str, Any], kind: str) -> int:
    delay = data.get("delayBetweenRequests", 0)
    if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
        raise ConfigurationError(
            f"{kind} field 'delayBetweenRequests' must be a non-negative integer, got: {delay!r}"
        )
    return delay


@dataclass
class RunTestsRequest:
    """Caller input for running an explicit list of requests."""

    name: str
    requests: List[TestRequest]
    stop_on_failure: bool = False
    delay_between_requests: int = 0
    variables: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RunTestsRequest":
        kind = "Run request"
        _require_mapping(data, kind)
        return cls(
            name=_require_str(data, "name", kind),
            requests=[TestRequest.from_dict(r) for r in _parse_list(data, "requests", kind) or []],
            stop_on_failure=_parse_stop_on_failure(data, kind),
            delay_between_requests=_parse_delay(data, kind),
            variables=_parse_variables(data, kind),
        )


@dataclass
class RunCollectionTestsRequest:
    """Caller input for running the requests of a stored collection."""

    stop_on_failure: bool = False
    delay_between_requests: int = 0
    variables: Dict[str, str] = field(default_factory=dict)
    folder_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RunCollectionTestsRequest":
        kind = "Collection run request"
        _require_mapping(data, kind)
        folder_id = data.get("folderId")
        return cls(
            stop_on_failure=_parse_stop_on_failure(data, kind),
            delay_between_requests=_parse_delay(data, kind),
            variables=_parse_variables(data, kind),
            folder_id=str(folder_id) if folder_id is not None else None,
        )
