"""Failure taxonomy shared by the npm fetcher, resolver and scanner.

Two kinds of failure exist:
1. Recoverable failures (fetch, resolution) are returned as values and become
   the terminal ``message`` of the node where they occur.
2. Malformed seed input is raised as an exception and aborts the scan before
   any queue processing.
"""

from dataclasses import dataclass


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================

class RecoverableError(Exception):
    """Base class for recoverable business errors.

    These errors indicate expected failure conditions that can be handled
    gracefully by recording the failure and continuing with other packages.
    """
    pass


class ConfigurationError(RecoverableError):
    """Configuration or manifest error.

    Raised when a manifest, lockfile or configuration source is malformed
    or contains invalid data.
    """
    pass


class MalformedInputError(ConfigurationError):
    """Seed input is not well-formed (e.g. unparsable package.json text).

    Unlike fetch and resolution failures this one is fatal for a scan.
    """
    pass


class FetchError(RecoverableError):
    """Package metadata could not be downloaded."""
    pass


class ResolutionError(RecoverableError):
    """No available version satisfies the requested range or tag."""
    pass


# =============================================================================
# Failure values
# =============================================================================

@dataclass(frozen=True)
class Failure:
    """A recoverable failure captured as data.

    Attributes:
        message: Human-readable description, copied onto the failed node.
    """

    message: str

    def to_error(self) -> RecoverableError:
        """Return the matching exception, for callers that prefer raising."""
        return RecoverableError(self.message)


@dataclass(frozen=True)
class FetchFailure(Failure):
    """Non-success transport response or transport-level error."""

    status_code: int = 0

    def to_error(self) -> FetchError:
        return FetchError(self.message)


@dataclass(frozen=True)
class ResolutionFailure(Failure):
    """No version in the available set satisfies the requested range."""

    def to_error(self) -> ResolutionError:
        return ResolutionError(self.message)


def is_failure(value: object) -> bool:
    """Return True when ``value`` is a captured failure."""
    return isinstance(value, Failure)
