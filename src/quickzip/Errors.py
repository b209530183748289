"""Exception types raised by quickzip.

Every failure of an archive operation is reported as a subclass of
`ZipManagerError`, so callers can catch the whole family at once or pick out
a single kind. Asynchronous operations deliver the very same exception
objects through `PollableFuture.result()`.
"""


class ZipManagerError(Exception):
    """Base class for all quickzip failures."""


class NotFoundError(ZipManagerError):
    """The source path or archive does not exist."""


class IOFailureError(ZipManagerError):
    """Reading, writing, copying or deleting on the filesystem failed."""


class FormatFailureError(ZipManagerError):
    """The archive container is corrupt or not a ZIP archive."""


class ConflictError(ZipManagerError):
    """A staging directory could not be created because the name is taken."""


class EmptyArchiveError(ZipManagerError):
    """The archive holds no entries to extract."""


class PoolSaturatedError(ZipManagerError):
    """The worker pool refused a submission because all slots are in use."""


class InvalidStateError(ZipManagerError):
    """A future was read before completion or published twice."""


class EncryptedArchiveError(FormatFailureError):
    """An entry is encrypted and no usable password was supplied."""
