"""Domain errors raised by the repository and mapped to HTTP by the app."""


class TaskAIError(Exception):
    """Base class for every error the core raises on purpose."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(TaskAIError):
    """A draft or query parameter is malformed or out of range."""


class EmailAlreadyRegisteredError(ValidationError):
    pass


class NotFoundError(TaskAIError):
    """No record matches both the id and the caller's owner id."""


class AuthenticationRequiredError(TaskAIError):
    pass


class UpstreamUnavailableError(TaskAIError):
    """The store (or another collaborator) could not be reached."""
