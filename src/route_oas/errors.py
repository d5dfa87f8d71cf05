"""Exception hierarchy for route-oas.

Everything raised on purpose derives from RouteOasError so callers
(and the CLI) can catch a single type.
"""


class RouteOasError(Exception):
    """Base class for all route-oas errors."""


class UnsupportedSchemaVersionError(RouteOasError, ValueError):
    """Raised when the requested OpenAPI version has no exporter."""

    def __init__(self, version):
        self.version = version
        super().__init__(f"Unsupported schema version: {version!r} (expected 2, 3 or 3.1)")


class InvalidResponseSpecError(RouteOasError):
    """Raised when an explicit response declaration is malformed."""


class ModelResolutionError(RouteOasError):
    """Raised when a model or application reference cannot be imported."""


class ConfigurationError(RouteOasError):
    """Raised when generate() options fail validation."""
