# debrid_search/errors.py


class DebridSearchError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(DebridSearchError):
    """A malformed request: bad content type, id, season or episode."""

    def __init__(
        self, message: str, field: str | None = None, code: str | None = None
    ) -> None:
        super().__init__(message)
        self.field = field
        self.code = code


class ProviderError(DebridSearchError):
    """A listing, detail or unrestrict call to a debrid provider failed."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class AuthenticationError(ProviderError):
    """The provider rejected the API key. Never isolated per candidate."""


class MetadataSourceError(DebridSearchError):
    """Cinemeta, TMDb, Trakt or Jikan could not be reached."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source
