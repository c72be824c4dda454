"""Exception types raised across the evaluator.

Parse-time errors are fatal and reach the caller. Per-endpoint errors are
raised internally and turned into result records by the test runner.
"""


class EvaluatorError(Exception):
    """Base class for every error raised by oas-evaluator."""


class SpecLoadError(EvaluatorError):
    """The spec document could not be read, fetched or decoded."""


class UnsupportedVersion(EvaluatorError):
    """The document carries neither a Swagger 2.0 nor an OpenAPI 3.x marker."""

    def __init__(self, message: str = "Unsupported OpenAPI specification version"):
        super().__init__(message)


class UnsupportedMethod(EvaluatorError):
    """An endpoint uses an HTTP method the runner does not send."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported method: {method}")


class TransportFailure(EvaluatorError):
    """A test call got no HTTP response (DNS, connect, timeout, bad URL)."""


class PersistenceFailure(EvaluatorError):
    """The result store could not be reached or rejected the request."""
