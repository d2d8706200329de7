"""Exception hierarchy for the sign lookup core.

A store miss is not an error: it simply triggers generation.  Everything
else that can go wrong in one operation is expressed as a subclass of
:class:`ShouyutongError`, so callers can report the failure and carry on.
"""


class ShouyutongError(Exception):
    """Base class for all recoverable sign lookup failures."""


class GenerationError(ShouyutongError):
    """The external provider could not produce text or image content.

    Transient: nothing is persisted, and re-invoking the same call is safe.
    """


class ValidationError(ShouyutongError):
    """User-friendly validation error.

    Raised when input is rejected before any mutation happens.  The message
    is intended to be displayed directly to the user.
    """


class PersistenceError(ShouyutongError):
    """The persistence substrate refused a write (unavailable, quota, I/O)."""


class ImportFormatError(ShouyutongError):
    """A library snapshot does not have the expected shape."""


class AuthorizationError(ShouyutongError):
    """A mutating store operation was attempted without authorization."""
