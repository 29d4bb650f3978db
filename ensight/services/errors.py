"""Error taxonomy shared by the core services."""
from __future__ import annotations


class EnsightError(Exception):
    """Base class for every error raised by ensight."""


class InvalidAddressError(EnsightError, ValueError):
    """An address failed validation. Raised before any state is touched."""

    def __init__(self, value: object, field: str = "address"):
        self.value = value
        self.field = field
        super().__init__(f'valid "{field}" address required, got {value!r}')


class InvalidNameError(EnsightError, ValueError):
    """An ENS name was rejected before reaching the resolver."""

    def __init__(self, name: object):
        self.name = name
        super().__init__(f"Invalid ENS name {name!r}. Must end with .eth")


class ConfigError(EnsightError, ValueError):
    """Settings could not be loaded or parsed."""


class StoreUnavailableError(EnsightError):
    """The backing store is unreachable, timed out or returned an error.

    Sub-writes that completed before the failure are not rolled back; callers
    may retry the whole operation.
    """


class ResolutionError(EnsightError):
    """The name-resolution collaborator failed."""
