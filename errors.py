class ConfigurationError(ValueError):
    """Invalid construction parameters (dimensions, memory size, rates)."""


class PersistenceError(OSError):
    """A weight file could not be written or read back."""


class DimensionMismatchError(PersistenceError):
    """A weight file holds a vector of a different dimension."""
