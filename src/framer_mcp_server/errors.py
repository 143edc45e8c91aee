"""Exception hierarchy shared by the client, the sync engine, and MCP tools.

- ``PreconditionError`` -- malformed caller input, raised before any remote call.
  Subclasses ``ValueError`` so tool dispatch reports it as a validation error.
- ``CollectionNotFoundError`` -- the referenced collection does not exist.
- ``TransportError`` -- anything that went wrong talking to the Framer API.
- ``FramerApiError`` -- the API answered with a JSON-RPC error object.
"""


class FramerError(Exception):
    """Base class for all framer_mcp_server errors."""


class PreconditionError(FramerError, ValueError):
    """Caller input violates a precondition of the requested operation."""


class CollectionNotFoundError(FramerError):
    """Raised when a collection ID does not resolve to a collection."""

    def __init__(self, collection_id: str):
        self.collection_id = collection_id
        super().__init__(f"Collection not found for ID: {collection_id}")


class TransportError(FramerError):
    """Network, HTTP, or protocol failure while calling the Framer API."""


class FramerApiError(TransportError):
    """Error object returned by the Framer API.

    Attributes:
        code: Numeric error code from the response (0 when absent).
        message: Error message from the response.
    """

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"Framer API error {code}: {message}")
