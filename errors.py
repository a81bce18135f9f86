"""
errors.py — Exception Taxonomy
===============================
Everything the traversal engine raises derives from TraversalError, so
callers (and the Flask layer) can catch one type.  Each subclass also
derives from the builtin a plain-Python caller would expect.

    InvalidConfigurationError   bad RunConfig, raised by start()
    EmptyFrontierError          remove_next() on an empty frontier; a
                                state-machine defect, never a run outcome
    AlreadyTerminatedError      step() after the run reached DONE
    NotStartedError             step() before start() / after reset()

A search that finds no path is NOT an error: it ends normally with
TerminationReason.SEARCH_FAILED.
"""


class TraversalError(Exception):
    """Base class for engine errors."""


class InvalidConfigurationError(TraversalError, ValueError):
    pass


class EmptyFrontierError(TraversalError, IndexError):
    pass


class AlreadyTerminatedError(TraversalError, RuntimeError):
    pass


class NotStartedError(TraversalError, RuntimeError):
    pass


__all__ = [
    "TraversalError",
    "InvalidConfigurationError",
    "EmptyFrontierError",
    "AlreadyTerminatedError",
    "NotStartedError",
]
