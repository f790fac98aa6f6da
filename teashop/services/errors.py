"""Service-layer error types, mapped to HTTP responses by the API routers."""


class ValidationFailed(ValueError):
    """Input rejected by a business rule; `field` names the offending input when known."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFound(LookupError):
    pass
