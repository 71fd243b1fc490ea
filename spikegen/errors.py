"""Errors raised while defining, registering and preparing models.

All of them are configuration-time programmer errors. Nothing retries:
the generation run is expected to abort on any of them.
"""


class ModelDefinitionError(ValueError):
    """A model record is inconsistent, or cannot be registered."""


class DerivedParameterIndexError(IndexError):
    """A derived parameter was requested by an index the strategy lacks."""


class UnknownHandleError(KeyError):
    """No model is registered under the requested handle or name."""


class CatalogFrozenError(RuntimeError):
    """A frozen catalog was asked to change."""
