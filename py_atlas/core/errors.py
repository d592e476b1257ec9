"""Exceptions raised by the generation engine."""


class AtlasError(Exception):
    """Base class for engine errors."""


class GenerationCancelled(AtlasError):
    """A generation task observed its cancellation flag."""
