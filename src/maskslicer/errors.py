"""Exception types raised by maskslicer."""


class SlicerError(Exception):
    """Base class for all maskslicer errors."""

    pass


class ConfigurationError(SlicerError, ValueError):
    """Raised when slicing parameters are invalid.

    Configuration is validated before any geometry is processed, so this is
    the only failure a caller sees for bad canvas sizes, thicknesses or
    tolerances.
    """

    pass


class SliceCancelled(SlicerError):
    """Raised when a slicing run is cancelled between planes."""

    def __init__(self, completed: int, total: int):
        self.completed = completed
        self.total = total
        super().__init__(f"Slicing cancelled after {completed} of {total} planes")
