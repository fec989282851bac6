class GledError(Exception):
    """Base class for all gled errors."""


class UsageError(GledError):
    """Raised when the command line or preset file can't be used."""


class InvalidFormatError(UsageError, ValueError):
    """Raised when a color, toggle or number is malformed."""


class OutOfRangeError(UsageError, ValueError):
    """Raised when a rate or brightness is outside its bounds."""


class MissingArgumentError(UsageError):
    """Raised when a required argument is absent."""


class DeviceNotFoundError(GledError):
    """Raised when the mouse isn't connected."""


class TransportError(GledError):
    """Raised when a control transfer fails."""

    def __init__(self, message, errno=None):
        super().__init__(message)
        self.errno = errno
