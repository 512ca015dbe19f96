"""Exception types raised by the batch engine and the Linear client."""


class LinearctlError(Exception):
    pass


class SelectorError(LinearctlError):
    """The working set could not be determined (no selector, unknown issue, zero matches)."""


class ResolutionError(LinearctlError):
    """A name required by an update flag did not resolve to an entity."""


class LinearApiError(LinearctlError):
    """Transport, authentication or GraphQL failure talking to Linear."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @property
    def not_found(self) -> bool:
        return any("not found" in str(e.get("message", "")).lower() for e in self.errors)


class UpdateRejectedError(LinearApiError):
    """Linear answered a mutation with success=false."""
