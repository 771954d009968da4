"""Custom exceptions used across FieldMap."""


class FieldMapError(Exception):
    """Base error for the application."""


class ConfigError(FieldMapError):
    """Configuration related error."""


class RegistryError(FieldMapError):
    """Raised when a registry operation refers to an unknown or conflicting field."""
