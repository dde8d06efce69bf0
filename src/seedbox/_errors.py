"""Seedbox error hierarchy.

All seedbox-specific errors inherit from SeedboxError for easy catching.
"""


class SeedboxError(Exception):
    """Base error for all seedbox operations."""


class ConfigError(SeedboxError):
    """Invalid or missing configuration."""


class RegistrationError(SeedboxError):
    """A model or action definition could not be registered."""


class DispatchError(SeedboxError):
    """Error raised while routing an action through the pipeline."""


class EffectError(SeedboxError):
    """Error in the effect interpreter (unknown effect, bad yield)."""


class BindingError(SeedboxError):
    """A binding descriptor could not be resolved."""
