"""
Service-level exceptions.

Every endpoint reports these the same way: HTTP 500 with
{"success": false, "error": "<message>"}. The error kind is kept in the
class for logging, not for the status code.
"""


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    kind = "not_found"


class InvalidInputError(ServiceError):
    """Bad file type/size, missing required field."""

    kind = "validation"


class UpstreamError(ServiceError):
    """LLM or search API failed, or replied with something unusable."""

    kind = "upstream"


class ConfigurationError(ServiceError):
    """A required API key or setting is missing."""

    kind = "configuration"
