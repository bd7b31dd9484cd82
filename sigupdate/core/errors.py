"""Exception hierarchy for signature updates.

Every error raised by the update pipeline derives from
``SignatureUpdateError`` so that the CLI has a single type to catch.
Which of these are absorbed and which end the run is decided by the
caller; see ``sigupdate.core.reconciler`` and ``sigupdate.core.sync_run``.
"""

from __future__ import annotations


class SignatureUpdateError(RuntimeError):
    """Base class for all signature update failures."""


class VersionRecordError(SignatureUpdateError):
    """Raised when the published version record cannot be resolved or parsed."""


class SigtoolNotFoundError(SignatureUpdateError):
    """Raised when the ``sigtool`` executable cannot be located."""


class VersionProbeError(SignatureUpdateError):
    """Raised when sigtool cannot report a trusted version for a file."""


class FetchError(SignatureUpdateError):
    """Raised when a remote file cannot be transferred into the data directory.

    ``status_code`` is the HTTP status of the failed response, or ``None``
    when the failure happened before a response was received.
    """

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ReconcileError(SignatureUpdateError):
    """Raised when a signature could not be brought up to date."""

    def __init__(self, message: str, *, signature: str) -> None:
        super().__init__(message)
        self.signature = signature
