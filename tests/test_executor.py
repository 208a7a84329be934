"""Tests for the request executor."""

from unittest.mock import MagicMock

import pytest

from api_test_runner.assertions import (
    DEFAULT_ASSERTION_NAME,
    HeaderAssertion,
    StatusAssertion,
)
from api_test_runner.client import HttpResponse
from api_test_runner.exceptions import ConnectionFailedError, RequestTimeoutError
from api_test_runner.executor import RequestExecutor, build_url
from api_test_runner.models import KeyValue, TestRequest, TestStatus, VariableExtraction


def _request(**kwargs):
    defaults = {
        "id": "r1",
        "name": "Ping",
        "method": "GET",
        "url": "https://api.example.com/ping",
    }
    defaults.update(kwargs)
    return TestRequest(**defaults)


@pytest.fixture
def http():
    mock_http = MagicMock()
    mock_http.send.return_value = HttpResponse(status_code=200, headers={}, content=b"")
    return mock_http


class TestBuildUrl:
    """Tests for build_url()."""

    def test_substitutes_url(self):
        request = _request(url="{{baseUrl}}/users/{id}")
        assert build_url(request, {"baseUrl": "https://x", "id": "7"}) == "https://x/users/7"

    def test_appends_params(self):
        request = _request(
            url="https://x/search",
            params=[KeyValue("q", "a b&c"), KeyValue("page", "{{page}}")],
        )
        assert build_url(request, {"page": "2"}) == "https://x/search?q=a%20b%26c&page=2"

    def test_existing_query_string(self):
        request = _request(url="https://x/search?lang=en", params=[KeyValue("q", "x")])
        assert build_url(request, {}) == "https://x/search?lang=en&q=x"

    def test_skips_disabled_and_empty_keys(self):
        request = _request(
            url="https://x",
            params=[KeyValue("a", "1", enabled=False), KeyValue("", "2"), KeyValue("b", "3")],
        )
        assert build_url(request, {}) == "https://x?b=3"

    def test_keeps_duplicates_in_order(self):
        request = _request(url="https://x", params=[KeyValue("t", "1"), KeyValue("t", "2")])
        assert build_url(request, {}) == "https://x?t=1&t=2"

    def test_unreserved_characters_kept(self):
        request = _request(url="https://x", params=[KeyValue("k", "a-b_c.d~e")])
        assert build_url(request, {}) == "https://x?k=a-b_c.d~e"


class TestRequestExecutor:
    """Tests for RequestExecutor.execute()."""

    def test_end_to_end_pass(self, http):
        request = _request(assertions=[StatusAssertion(expected_status=200)])
        result = RequestExecutor(http).execute(request, {})

        assert result.status == TestStatus.PASSED
        assert result.response_status == 200
        assert len(result.assertions) == 1
        assertion = result.assertions[0]
        assert assertion.name == "Status code equals 200"
        assert assertion.passed
        assert assertion.expected == "200"
        assert assertion.actual == "200"

    def test_failed_assertion(self, http):
        http.send.return_value = HttpResponse(status_code=500)
        request = _request(assertions=[StatusAssertion(expected_status=200)])
        result = RequestExecutor(http).execute(request, {})
        assert result.status == TestStatus.FAILED
        assert result.error is None

    @pytest.mark.parametrize(
        "assertions",
        [None, [], [StatusAssertion(expected_status=404, enabled=False)]],
    )
    def test_default_assertion_synthesized(self, http, assertions):
        result = RequestExecutor(http).execute(_request(assertions=assertions), {})
        assert len(result.assertions) == 1
        assert result.assertions[0].name == DEFAULT_ASSERTION_NAME
        assert result.assertions[0].passed
        assert result.status == TestStatus.PASSED

    def test_default_assertion_fails_on_error_status(self, http):
        http.send.return_value = HttpResponse(status_code=404)
        result = RequestExecutor(http).execute(_request(), {})
        assert result.status == TestStatus.FAILED

    def test_disabled_assertions_emit_nothing(self, http):
        request = _request(
            assertions=[
                StatusAssertion(expected_status=200),
                StatusAssertion(expected_status=500, enabled=False),
            ]
        )
        result = RequestExecutor(http).execute(request, {})
        assert [a.name for a in result.assertions] == ["Status code equals 200"]

    def test_sends_substituted_headers_and_body(self, http):
        request = _request(
            method="post",
            url="{{base}}/users",
            headers=[
                KeyValue("Authorization", "Bearer {{token}}"),
                KeyValue("X-Off", "1", enabled=False),
            ],
            body='{"name": "{{name}}"}',
            body_type="json",
        )
        context = {"base": "https://x", "token": "abc", "name": "Ada"}
        result = RequestExecutor(http).execute(request, context)

        args, kwargs = http.send.call_args
        assert args == ("POST", "https://x/users")
        headers = kwargs["headers"]
        assert headers["authorization"] == "Bearer abc"
        assert headers["Content-Type"] == "application/json"
        assert "X-Off" not in headers
        assert kwargs["body"] == b'{"name": "Ada"}'
        assert result.url == "https://x/users"
        assert result.method == "post"

    @pytest.mark.parametrize(
        "body_type,content_type",
        [("xml", "application/xml"), ("html", "text/html")],
    )
    def test_content_type_by_body_type(self, http, body_type, content_type):
        request = _request(method="PUT", body="<a/>", body_type=body_type)
        RequestExecutor(http).execute(request, {})
        assert http.send.call_args[1]["headers"]["content-type"] == content_type

    def test_raw_body_keeps_content_type(self, http):
        request = _request(
            method="POST",
            headers=[KeyValue("Content-Type", "text/csv")],
            body="a,b",
            body_type="raw",
        )
        RequestExecutor(http).execute(request, {})
        assert http.send.call_args[1]["headers"]["Content-Type"] == "text/csv"

    def test_no_body(self, http):
        RequestExecutor(http).execute(_request(body=""), {})
        assert http.send.call_args[1]["body"] is None

    def test_unsupported_method(self, http):
        request = _request(method="TRACE", url="{{u}}")
        result = RequestExecutor(http).execute(request, {"u": "https://x"})
        assert result.status == TestStatus.ERROR
        assert result.error == "Unsupported method: TRACE"
        assert result.url == "https://x"
        assert result.assertions == []
        http.send.assert_not_called()

    def test_transport_error(self, http):
        http.send.side_effect = ConnectionFailedError(
            "https://api.example.com/ping", ConnectionError("Connection refused")
        )
        result = RequestExecutor(http).execute(_request(), {})
        assert result.status == TestStatus.ERROR
        assert result.error == "Connection refused"
        assert result.response_status is None
        assert result.response_body is None
        assert result.response_time is not None
        assert result.assertions == []

    def test_timeout(self, http):
        http.send.side_effect = RequestTimeoutError("https://x", TimeoutError("timed out"))
        result = RequestExecutor(http).execute(_request(), {})
        assert result.status == TestStatus.ERROR
        assert result.error == "timed out"

    def test_response_fields(self, http):
        http.send.return_value = HttpResponse(
            status_code=200,
            headers={"content-type": "application/json"},
            content='{"name": "Zoë"}'.encode("utf-8"),
        )
        result = RequestExecutor(http).execute(
            _request(assertions=[HeaderAssertion(header_name="Content-Type")]), {}
        )
        assert result.response_body == '{"name": "Zoë"}'
        assert result.response_size == len('{"name": "Zoë"}'.encode("utf-8"))
        assert result.response_headers == {"content-type": "application/json"}
        assert result.status == TestStatus.PASSED

    def test_invalid_utf8_replaced(self, http):
        http.send.return_value = HttpResponse(status_code=200, content=b"ok\xff")
        result = RequestExecutor(http).execute(_request(), {})
        assert result.response_body == "ok\ufffd"
        assert result.response_size == 3

    def test_extraction(self, http):
        http.send.return_value = HttpResponse(status_code=200, content=b'{"userId": "42"}')
        request = _request(extract_variables=[VariableExtraction("id", "$.userId")])
        result = RequestExecutor(http).execute(request, {})
        assert len(result.extracted_variables) == 1
        assert result.extracted_variables[0].value == "42"

    def test_no_extraction_rules(self, http):
        result = RequestExecutor(http).execute(_request(extract_variables=[]), {})
        assert result.extracted_variables is None

    def test_all_rules_disabled_still_extracts(self, http):
        request = _request(extract_variables=[VariableExtraction("id", "$.a", enabled=False)])
        result = RequestExecutor(http).execute(request, {})
        assert result.extracted_variables == []

    def test_failed_extraction_does_not_fail_request(self, http):
        http.send.return_value = HttpResponse(status_code=200, content=b"not json")
        request = _request(extract_variables=[VariableExtraction("id", "$.id")])
        result = RequestExecutor(http).execute(request, {})
        assert result.status == TestStatus.PASSED
        assert not result.extracted_variables[0].success

    def test_context_not_mutated(self, http):
        http.send.return_value = HttpResponse(status_code=200, content=b'{"id": "1"}')
        context = {"a": "b"}
        RequestExecutor(http).execute(
            _request(extract_variables=[VariableExtraction("id", "$.id")]), context
        )
        assert context == {"a": "b"}
