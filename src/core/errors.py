"""Error taxonomy shared by the analysis and career pipelines."""


class JobScoutError(Exception):
    """Base class for all job scout errors."""


class ValidationError(JobScoutError):
    """Missing or malformed request input."""


class NotFoundError(JobScoutError):
    """A referenced company or job does not exist."""


class FetchError(JobScoutError):
    """An outbound download returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderRequestError(JobScoutError):
    """An LLM provider rejected the request or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UnsupportedFormatError(JobScoutError):
    """Resume file extension is not one of the supported document kinds."""


class ParseError(JobScoutError):
    """LLM output could not be turned into the expected JSON payload."""


class MissingCredentialError(JobScoutError):
    """A cloud provider was selected without an API key."""


class MissingConfigError(JobScoutError):
    """A local provider was selected without an endpoint URL."""


class UnsupportedOperationError(JobScoutError):
    """The selected provider lacks a capability, such as reading documents."""
