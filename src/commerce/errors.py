"""Exceptions raised by the commerce core beyond Protean's own.

Protean's ``ValidationError`` and ``ObjectNotFoundError`` cover field and
lookup failures. The classes here carry the cases those two do not: access
denial, lost concurrency races, uniqueness conflicts and upstream failures.
"""


class CommerceError(Exception):
    """Base class for commerce-specific errors."""

    status_code = 500

    def __init__(self, message: str, payload: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class ForbiddenError(CommerceError):
    """The caller does not own the resource it is acting on."""

    status_code = 403


class StaleStateError(CommerceError):
    """The aggregate changed since the caller last read it."""

    status_code = 409


class DuplicateError(CommerceError):
    """A uniquely keyed record already exists."""

    status_code = 400


class UpstreamError(CommerceError):
    """An external service failed or answered with an error.

    ``upstream`` holds whatever the remote side returned, for diagnosis.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        upstream: dict | str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.upstream = upstream
        self.upstream_status = status_code
