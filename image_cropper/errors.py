"""
Error kinds raised by the geometry modules and the result type returned by
``CropSession``.

The pure modules (``mapping``, ``geometry``, ``rotation``) raise the
exceptions below.  ``CropSession`` catches them at its boundary, logs them
and hands them back inside an ``OperationResult`` so the UI can decide
whether to retry or show a message.  All of them are recoverable.
"""

from dataclasses import dataclass
from typing import Any


class CropperError(Exception):
    """Base class for every recoverable cropping error."""


class DegenerateFrame(CropperError):
    """The container or the image has zero extent."""


class CropFailure(CropperError):
    """The computed pixel rect is invalid or the codec rejected it."""


class RotateFailure(CropperError):
    """The codec could not produce a rotated image."""


class InvalidTransition(CropperError):
    """The operation is not allowed in the session's current state."""


class SessionBusy(CropperError):
    """A codec call is still in flight."""


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a session operation: either a value or an error."""
    ok: bool
    value: Any = None
    error: CropperError | None = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: CropperError) -> "OperationResult":
        return cls(ok=False, error=error)

    @property
    def message(self) -> str:
        """Human-readable error text, empty on success."""
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__
