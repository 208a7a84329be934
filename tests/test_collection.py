"""Tests for collection request resolution."""

from api_test_runner.assertions import StatusAssertion
from api_test_runner.collection import (
    find_folder,
    parse_stored_request,
    resolve_requests,
    run_name,
)
from api_test_runner.models import KeyValue


def _stored(request_id, order=None, **kwargs):
    data = {
        "id": request_id,
        "name": f"Request {request_id}",
        "method": "GET",
        "url": f"https://x/{request_id}",
    }
    if order is not None:
        data["testOrder"] = order
    data.update(kwargs)
    return data


COLLECTION = {
    "id": "c1",
    "name": "Users API",
    "requests": [_stored("root1"), _stored("root2")],
    "folders": [
        {
            "id": "f1",
            "name": "Auth",
            "requests": [_stored("login")],
            "folders": [
                {"id": "f1a", "name": "Tokens", "requests": [_stored("refresh")], "folders": []}
            ],
        },
        {"id": "f2", "requests": [_stored("profile")], "folders": []},
    ],
}


class TestFindFolder:
    """Tests for find_folder()."""

    def test_top_level(self):
        assert find_folder(COLLECTION["folders"], "f2")["id"] == "f2"

    def test_nested(self):
        assert find_folder(COLLECTION["folders"], "f1a")["name"] == "Tokens"

    def test_missing(self):
        assert find_folder(COLLECTION["folders"], "nope") is None


class TestParseStoredRequest:
    """Tests for parse_stored_request()."""

    def test_order_and_request(self):
        order, request = parse_stored_request(_stored("r1", order=3))
        assert order == 3
        assert request.id == "r1"

    def test_test_config_preferred(self):
        data = _stored(
            "r1",
            assertions=[{"type": "status", "expectedStatus": 500}],
            testConfig={"assertions": [{"type": "status", "expectedStatus": 201}]},
        )
        _, request = parse_stored_request(data)
        assert request.assertions == [StatusAssertion(expected_status=201)]

    def test_root_level_fallback(self):
        data = _stored(
            "r1", extractVariables=[{"variableName": "token", "jsonPath": "$.token"}]
        )
        _, request = parse_stored_request(data)
        assert request.extract_variables[0].variable_name == "token"

    def test_invalid_assertion_dropped(self):
        data = _stored(
            "r1",
            assertions=[{"type": "bogus"}, {"type": "status"}, "not a mapping"],
        )
        _, request = parse_stored_request(data)
        assert request.assertions == [StatusAssertion()]

    def test_malformed_headers_and_params_dropped(self):
        data = _stored(
            "r1", headers=["oops", {"key": "Accept", "value": "*/*"}, {"value": "x"}], params=[42]
        )
        _, request = parse_stored_request(data)
        assert request.headers == [KeyValue("Accept", "*/*")]
        assert request.params == []

    def test_missing_required_field_skipped(self):
        assert parse_stored_request({"id": "r1", "name": "No url", "method": "GET"}) is None

    def test_non_mapping_skipped(self):
        assert parse_stored_request("r1") is None

    def test_non_integer_order_ignored(self):
        order, _ = parse_stored_request(_stored("r1", order="first"))
        assert order is None

    def test_no_assertions(self):
        _, request = parse_stored_request(_stored("r1"))
        assert request.assertions is None
        assert request.extract_variables is None


class TestResolveRequests:
    """Tests for resolve_requests()."""

    def test_folders_then_root(self):
        ids = [r.id for r in resolve_requests(COLLECTION)]
        assert ids == ["login", "refresh", "profile", "root1", "root2"]

    def test_folder_filter_includes_subfolders(self):
        ids = [r.id for r in resolve_requests(COLLECTION, "f1")]
        assert ids == ["login", "refresh"]

    def test_missing_folder(self):
        assert resolve_requests(COLLECTION, "nope") == []

    def test_sorted_by_test_order(self):
        collection = {
            "requests": [_stored("c", order=2), _stored("none"), _stored("a", order=0)],
            "folders": [{"id": "f", "requests": [_stored("b", order=1)]}],
        }
        ids = [r.id for r in resolve_requests(collection)]
        assert ids == ["a", "b", "c", "none"]

    def test_ties_keep_encounter_order(self):
        collection = {
            "requests": [_stored("x", order=1), _stored("y", order=1), _stored("z", order=1)]
        }
        assert [r.id for r in resolve_requests(collection)] == ["x", "y", "z"]

    def test_unusable_requests_skipped(self):
        collection = {"requests": [_stored("ok"), {"id": "broken"}]}
        assert [r.id for r in resolve_requests(collection)] == ["ok"]

    def test_malformed_header_does_not_skip_request(self):
        collection = {"requests": [_stored("bad", headers=["oops"]), _stored("good")]}
        requests = resolve_requests(collection)
        assert [r.id for r in requests] == ["bad", "good"]
        assert requests[0].headers == []

    def test_empty_collection(self):
        assert resolve_requests({"id": "c", "name": "Empty"}) == []


class TestRunName:
    """Tests for run_name()."""

    def test_collection(self):
        assert run_name(COLLECTION) == "Users API"

    def test_folder(self):
        assert run_name(COLLECTION, "f1a") == "Users API / Tokens"

    def test_unnamed_folder(self):
        assert run_name(COLLECTION, "f2") == "Users API / Unknown Folder"

    def test_missing_folder(self):
        assert run_name(COLLECTION, "nope") == "Users API"
