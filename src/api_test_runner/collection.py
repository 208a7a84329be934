"""
Resolution of the test requests of a stored collection.

Stored collections are plain mappings as saved by the application: a
``requests`` list for root-level requests and a ``folders`` tree where each
folder has its own ``requests`` and nested ``folders``.
"""

import logging
from dataclasses import replace
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .assertions import parse_assertion
from .exceptions import ConfigurationError
from .models import KeyValue, TestRequest, VariableExtraction

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (testOrder, request)
OrderedRequest = Tuple[Optional[int], TestRequest]


def find_folder(
    folders: Sequence[Mapping[str, Any]], folder_id: str
) -> Optional[Mapping[str, Any]]:
    """Find a folder by id anywhere in a folder tree."""
    for folder in folders:
        if folder.get("id") == folder_id:
            return folder
        found = find_folder(folder.get("folders") or [], folder_id)
        if found is not None:
            return found
    return None


def _parse_items(
    items: Any, parser: Callable[[Mapping[str, Any]], T], kind: str, request_name: str
) -> Optional[List[T]]:
    if not isinstance(items, list):
        return None
    parsed = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed %s of request '%s'", kind, request_name)
            continue
        try:
            parsed.append(parser(item))
        except ConfigurationError as e:
            logger.warning("Skipping invalid %s of request '%s': %s", kind, request_name, e)
    return parsed


def parse_stored_request(data: Mapping[str, Any]) -> Optional[OrderedRequest]:
    """
    Parse a stored request, tolerating malformed test configuration.

    Assertions and extraction rules are read from ``testConfig`` when
    present there, otherwise from the request itself. Invalid assertions or
    rules and malformed header or param entries are dropped; a request
    without id, name, method or url is skipped.

    Returns:
        Tuple of (testOrder, TestRequest), or None if the request is unusable
    """
    if not isinstance(data, dict):
        logger.warning("Skipping malformed stored request: %r", data)
        return None

    test_config = data.get("testConfig")
    if not isinstance(test_config, dict):
        test_config = {}

    raw_assertions = test_config.get("assertions", data.get("assertions"))
    raw_extractions = test_config.get("extractVariables", data.get("extractVariables"))

    nested = ("headers", "params", "assertions", "extractVariables")
    base = {k: v for k, v in data.items() if k not in nested}
    try:
        request = TestRequest.from_dict(base)
    except ConfigurationError as e:
        logger.warning("Skipping stored request %r: %s", data.get("id"), e)
        return None

    headers = _parse_items(data.get("headers"), KeyValue.from_dict, "header", request.name)
    params = _parse_items(data.get("params"), KeyValue.from_dict, "param", request.name)
    request = replace(
        request,
        headers=headers or [],
        params=params or [],
        assertions=_parse_items(raw_assertions, parse_assertion, "assertion", request.name),
        extract_variables=_parse_items(
            raw_extractions, VariableExtraction.from_dict, "extraction rule", request.name
        ),
    )

    test_order = data.get("testOrder")
    if isinstance(test_order, bool) or not isinstance(test_order, int):
        test_order = None
    return test_order, request


def _collect_folder_requests(folder: Mapping[str, Any], collected: List[OrderedRequest]) -> None:
    for raw in folder.get("requests") or []:
        parsed = parse_stored_request(raw)
        if parsed is not None:
            collected.append(parsed)
    for subfolder in folder.get("folders") or []:
        _collect_folder_requests(subfolder, collected)


def resolve_requests(
    collection: Mapping[str, Any], folder_id: Optional[str] = None
) -> List[TestRequest]:
    """
    Resolve the ordered test requests of a collection.

    Without a folder filter, the requests of every folder (recursively)
    are followed by the root-level requests. With a folder filter only that
    folder and its subfolders are used; an unknown folder yields no requests.
    Requests are then stably sorted by ``testOrder``, unordered ones last.

    Args:
        collection: Stored collection mapping
        folder_id: Optional id of the folder to restrict the run to

    Returns:
        Requests in execution order
    """
    folders = collection.get("folders") or []
    collected: List[OrderedRequest] = []

    if folder_id is not None:
        folder = find_folder(folders, folder_id)
        if folder is not None:
            _collect_folder_requests(folder, collected)
        else:
            logger.warning(
                "Folder %s not found in collection %s", folder_id, collection.get("id")
            )
    else:
        for folder in folders:
            _collect_folder_requests(folder, collected)
        for raw in collection.get("requests") or []:
            parsed = parse_stored_request(raw)
            if parsed is not None:
                collected.append(parsed)

    collected.sort(key=lambda item: (item[0] is None, item[0] or 0))
    return [request for _, request in collected]


def run_name(collection: Mapping[str, Any], folder_id: Optional[str] = None) -> str:
    """Name of a collection run, including the folder name when filtered by folder."""
    name = str(collection.get("name", ""))
    if folder_id is None:
        return name

    folder = find_folder(collection.get("folders") or [], folder_id)
    if folder is None:
        return name

    folder_name = folder.get("name")
    if not isinstance(folder_name, str):
        folder_name = "Unknown Folder"
    return f"{name} / {folder_name}"
