"""VariantForge error hierarchy.

All custom exceptions inherit from VariantForgeError, enabling callers
to catch the base class for blanket error handling or specific
subclasses for targeted recovery.
"""


class VariantForgeError(Exception):
    """Base exception for all VariantForge errors."""


class ConfigError(VariantForgeError):
    """Raised when configuration loading or preset validation fails."""


class PresetNotFoundError(ConfigError):
    """Raised when a selected preset name is not in the declared table."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No such preset: {name}")
        self.name = name


class PresetSelectorError(VariantForgeError, TypeError):
    """Raised when a preset selector is not a name, list of names, or mapping."""


class TransformError(VariantForgeError):
    """Raised when the image engine rejects a decode, operation, or encode."""


class SerializationError(VariantForgeError, TypeError):
    """Raised when a value of an unsupported type reaches the serializer."""
