"""Exception taxonomy for furnace."""

from __future__ import annotations


class FurnaceError(Exception):
    """Base class for all furnace errors."""


class DiscoveryError(FurnaceError):
    """No Cargo manifest was found under the project root."""


class IoError(FurnaceError):
    """A single path could not be read."""


class ExtractionError(FurnaceError):
    """Declarations could not be derived from one source file."""


class ConfigError(FurnaceError):
    """An output request or serialized graph could not be interpreted."""
