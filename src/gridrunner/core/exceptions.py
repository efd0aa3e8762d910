"""Custom exceptions for Gridrunner."""


class GridrunnerException(Exception):
    """Base exception for all Gridrunner-specific exceptions."""

    pass


class SessionInitError(GridrunnerException):
    """Raised when a browser session cannot be created on the grid."""

    pass


class DiagnosticCaptureError(GridrunnerException):
    """Raised when a screenshot cannot be taken or written."""

    pass


class SinkInitError(GridrunnerException):
    """Raised when the Elasticsearch client cannot be built."""

    pass


class SinkWriteError(GridrunnerException):
    """Raised when Elasticsearch rejects or never receives a result document."""

    pass


class SinkCloseError(GridrunnerException):
    """Raised when the Elasticsearch client cannot be closed cleanly."""

    pass


class MetadataExtractionError(GridrunnerException):
    """Raised when scenario metadata cannot be derived from its source."""

    pass


class SessionExpiredError(GridrunnerException):
    """Raised when step logic uses a worker scope whose scenario was torn down."""

    pass
