"""Error taxonomy shared by the analysis engines and the stream coordinator.

- LoadError: vocabulary/stopword source missing, unreadable or empty
- WriteError: snapshot export failed (prior file left as it was)
- StreamFault: the record supplier raised while producing a record
- CallerError: stream used before the vocabulary is loaded, non-callable hooks
"""

from __future__ import annotations


class SocialPulseError(Exception):
    """Base class for all socialpulse errors."""


class LoadError(SocialPulseError):
    pass


class WriteError(SocialPulseError):
    pass


class StreamFault(SocialPulseError):
    """Wraps an exception raised by the external record supplier.

    The original exception is available as ``__cause__`` and ``error``.
    """

    def __init__(self, message: str, error: BaseException | None = None):
        super().__init__(message)
        self.error = error


class CallerError(SocialPulseError):
    pass


class MalformedRecord(SocialPulseError, ValueError):
    """One undecodable item from a supplier.

    Suppliers yield these instead of raising so their iterator stays usable;
    the coordinator turns each one into a StreamFault.
    """

    def __init__(self, message: str, line_no: int | None = None, raw: object = None):
        super().__init__(message)
        self.line_no = line_no
        self.raw = raw
