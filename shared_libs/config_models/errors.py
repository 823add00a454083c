# shared_libs/config_models/errors.py

from typing import Any, Optional


class ClockChainError(Exception):
    """Base class for every error raised while processing a clock-chain document."""


class DecodeError(ClockChainError):
    """The configuration document could not be read or does not match the schema."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


# --- Alias resolution ---
class AliasResolutionError(ClockChainError):
    pass


class DuplicateAliasError(AliasResolutionError):
    pass


class InvalidAliasFormatError(AliasResolutionError):
    pass


class InvalidClockIDFormatError(AliasResolutionError):
    pass


class UnresolvedAliasError(AliasResolutionError):
    pass


# --- Plugin loading ---
class PluginLoadError(ClockChainError):
    pass


class DirectoryReadError(PluginLoadError):
    pass


class MalformedPluginError(PluginLoadError):
    pass


class MissingPluginNameError(PluginLoadError):
    pass


class DuplicatePluginNameError(PluginLoadError):
    pass


# --- Validation ---
class ValidationError(ClockChainError, ValueError):
    """First invariant violation found in a resolved and merged document."""


def describe_pydantic_error(error: Any) -> str:
    """First error of a pydantic ValidationError as 'dotted.location: message'."""
    errors = error.errors() if hasattr(error, "errors") else []
    if not errors:
        return str(error)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "Unknown error")
    extra = f" (and {len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"{loc}: {msg}{extra}" if loc else f"{msg}{extra}"
