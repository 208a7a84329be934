"""
Entry points for starting test runs.

Configuration problems (no requests, unknown workspace or collection) are
raised here, before any request is sent. Once a run has started, problems
with individual requests are reported in the results instead.
"""

import logging
from typing import Iterator, Optional

from .client import HttpClient
from .collection import resolve_requests, run_name
from .config import RunnerConfig
from .exceptions import CollectionNotFoundError, NoRequestsError, WorkspaceNotFoundError
from .models import RunCollectionTestsRequest, RunTestsRequest, TestRunSummary
from .runner import RunEvent, TestRunner
from .storage import CollectionStore

logger = logging.getLogger(__name__)


def run_tests(
    run_request: RunTestsRequest,
    config: Optional[RunnerConfig] = None,
    http: Optional[HttpClient] = None,
) -> TestRunSummary:
    """
    Run an explicit list of requests.

    Args:
        run_request: Requests and run options
        config: Runner configuration
        http: Optional HTTP client to use

    Returns:
        TestRunSummary of the run

    Raises:
        NoRequestsError: If the request list is empty
    """
    if not run_request.requests:
        raise NoRequestsError("No requests to test")
    return TestRunner(config, http).run(run_request)


def stream_tests(
    run_request: RunTestsRequest,
    config: Optional[RunnerConfig] = None,
    http: Optional[HttpClient] = None,
) -> Iterator[RunEvent]:
    """
    Run an explicit list of requests, returning an iterator of run events.

    Raises:
        NoRequestsError: If the request list is empty
    """
    if not run_request.requests:
        raise NoRequestsError("No requests to test")
    return TestRunner(config, http).stream(run_request)


def prepare_collection_run(
    store: CollectionStore,
    workspace_id: str,
    collection_id: str,
    request: RunCollectionTestsRequest,
) -> RunTestsRequest:
    """
    Resolve a collection run into an explicit run request.

    Args:
        store: Where workspaces and collections are looked up
        workspace_id: Workspace owning the collection
        collection_id: Collection to run
        request: Run options, optionally restricted to one folder

    Returns:
        RunTestsRequest with the resolved requests in execution order

    Raises:
        WorkspaceNotFoundError: If the workspace does not exist
        CollectionNotFoundError: If the collection does not exist
        NoRequestsError: If the collection or folder has no requests
    """
    if store.get_workspace(workspace_id) is None:
        raise WorkspaceNotFoundError(workspace_id)

    collection = store.get_collection(workspace_id, collection_id)
    if collection is None:
        raise CollectionNotFoundError(workspace_id, collection_id)

    requests = resolve_requests(collection, request.folder_id)
    if not requests:
        if request.folder_id is not None:
            raise NoRequestsError("Folder has no requests to test")
        raise NoRequestsError("Collection has no requests to test")

    logger.info(
        "Resolved %d request(s) from collection %s/%s",
        len(requests),
        workspace_id,
        collection_id,
    )
    return RunTestsRequest(
        name=run_name(collection, request.folder_id),
        requests=requests,
        stop_on_failure=request.stop_on_failure,
        delay_between_requests=request.delay_between_requests,
        variables=dict(request.variables),
    )


def run_collection_tests(
    store: CollectionStore,
    workspace_id: str,
    collection_id: str,
    request: RunCollectionTestsRequest,
    config: Optional[RunnerConfig] = None,
    http: Optional[HttpClient] = None,
) -> TestRunSummary:
    """Run the requests of a stored collection and return the summary."""
    run_request = prepare_collection_run(store, workspace_id, collection_id, request)
    return TestRunner(config, http).run(run_request)


def stream_collection_tests(
    store: CollectionStore,
    workspace_id: str,
    collection_id: str,
    request: RunCollectionTestsRequest,
    config: Optional[RunnerConfig] = None,
    http: Optional[HttpClient] = None,
) -> Iterator[RunEvent]:
    """
    Run the requests of a stored collection as a stream of run events.

    Lookup errors are raised by this call itself, before an iterator is
    returned, so a consumer never sees a partially started run.
    """
    run_request = prepare_collection_run(store, workspace_id, collection_id, request)
    return TestRunner(config, http).stream(run_request)
