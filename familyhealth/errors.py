"""Exceptions raised by the store and service layers."""

# PostgREST code for "JSON object requested, multiple (or no) rows returned"
ROW_NOT_FOUND = "PGRST116"
NETWORK_ERROR = "network_error"


class HealthHubError(Exception):
    """Base class for all application errors."""


class InvalidIdentifierError(HealthHubError, ValueError):
    """A user or record id failed validation."""


class StoreError(HealthHubError):
    """Error reported by the remote table store."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.code == ROW_NOT_FOUND

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "hint": self.hint,
            "status": self.status,
        }

    def __repr__(self) -> str:
        return f"StoreError(code={self.code!r}, message={self.message!r})"


class ServiceError(HealthHubError):
    """Generic failure surfaced to callers of a feature service."""
