"""
Exception types for the covidmath package.

Only parameter validation, missing data and cache persistence are surfaced
as errors. Numeric degeneracies (zero spread, too few samples) are handled
inside the math modules with fallback values.
"""


class InvalidParameterError(ValueError):
    """
    Raised before any computation when a request parameter is unusable.

    Covers unknown metric names and rows missing a required field.
    """


class EmptyDatasetError(ValueError):
    """
    Raised when there are no rows to analyse.

    No numerical step has run when this is raised.
    """


class CacheWriteError(RuntimeError):
    """
    Raised when a computed artifact cannot be persisted.

    The previously stored entry for the same key, if any, is left intact.
    """

    def __init__(self, key: str, message: str):
        super().__init__(f"Failed to write cache entry {key!r}: {message}")
        self.key = key
