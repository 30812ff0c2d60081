"""Error taxonomy shared by the adapters and the link workflow."""

from __future__ import annotations


class RorLinkError(RuntimeError):
    """Base class for every recoverable failure in a matching session."""


class TransportError(RorLinkError):
    """Non-success HTTP status or network failure talking to Pure or ROR."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConflictError(RorLinkError):
    """Pure rejected a write because the version token was stale."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(RorLinkError):
    """A response body could not be parsed into the expected shape."""


class IdentifierError(RorLinkError):
    """An identifier list change would break the one-ROR-id-per-record rule."""


class NotFoundEligible(RorLinkError):
    """The random draw did not land on an eligible external organisation."""


class IllegalTransitionError(RorLinkError):
    """A workflow operation was requested from a state that does not allow it."""


class WorkflowBusyError(RorLinkError):
    """A workflow operation was requested while another one is still in flight."""


__all__ = [
    "ConflictError",
    "IdentifierError",
    "IllegalTransitionError",
    "MalformedResponse",
    "NotFoundEligible",
    "RorLinkError",
    "TransportError",
    "WorkflowBusyError",
]
