"""
Custom exceptions for the API test runner.
"""


class ApiTestError(Exception):
    """Base exception for API test runner errors."""

    pass


class ConfigurationError(ApiTestError):
    """Raised when configuration or a run request is invalid or cannot be loaded."""

    pass


class NoRequestsError(ApiTestError):
    """Raised when a run resolves to zero requests."""

    def __init__(self, message: str = "No requests to test"):
        super().__init__(message)


class WorkspaceNotFoundError(ApiTestError):
    """Raised when the workspace of a collection run does not exist."""

    def __init__(self, workspace_id: str):
        self.workspace_id = workspace_id
        super().__init__("Workspace not found")


class CollectionNotFoundError(ApiTestError):
    """Raised when the collection of a collection run does not exist."""

    def __init__(self, workspace_id: str, collection_id: str):
        self.workspace_id = workspace_id
        self.collection_id = collection_id
        super().__init__("Collection not found")


class TransportError(ApiTestError):
    """Raised when an HTTP request produced no response."""

    def __init__(self, url: str, original_error: Exception):
        self.url = url
        self.original_error = original_error
        super().__init__(str(original_error))


class ConnectionFailedError(TransportError):
    """Raised on connection, DNS or TLS failures."""

    pass


class RequestTimeoutError(TransportError):
    """Raised when a request exceeds its timeout."""

    pass


class QueryError(ApiTestError):
    """Raised when a JSONPath query cannot be evaluated."""

    pass


class InvalidJsonError(QueryError):
    """Raised when the queried document is not valid JSON."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid JSON: {detail}")


class InvalidPathError(QueryError):
    """Raised when the query expression is not valid JSONPath."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid JSONPath '{path}': {detail}")
