"""Error types for reclaim."""


class ReclaimError(Exception):
    """Base class for errors reclaim surfaces to the caller."""


class InvalidSizeFormat(ReclaimError, ValueError):
    """A size threshold string could not be parsed."""


class SizeOverflow(ReclaimError, ValueError):
    """A size threshold does not fit in 64 unsigned bits."""


class TrashUnavailable(ReclaimError, OSError):
    """No recoverable-delete facility exists on this platform."""


class ConfigError(ReclaimError):
    """Malformed configuration file or invalid option value."""
