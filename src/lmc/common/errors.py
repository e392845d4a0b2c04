"""Custom exceptions for lmc."""


class LmcError(Exception):
    """Base exception for all lmc errors."""

    pass


class ConfigurationError(LmcError):
    """Raised when configuration is invalid or no data directory is usable."""

    pass


class ExpansionError(LmcError):
    """Raised when a string cannot be expanded (bad quoting, bad pattern)."""

    pass


class ModuleFileError(LmcError):
    """Raised when a module file cannot be opened or parsed."""

    pass


class DialectMismatch(ModuleFileError):
    """Raised when a module file is not written in the requested dialect."""

    pass


class GrammarError(LmcError):
    """Raised when a built-in parsing grammar fails to compile."""

    pass


class IndexStoreError(LmcError):
    """Raised when the index database cannot be opened, written or committed."""

    pass
