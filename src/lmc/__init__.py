"""lmc: lightweight module cache for Tcl and Lmod module trees."""

__version__ = "0.1.0"

# Re-export common utilities for convenience
from lmc.cache import BinaryEntry, CacheBuilder, IndexStore, MatchMode, SearchEngine
from lmc.common import (
    ConfigurationError,
    ExpansionError,
    IndexStoreError,
    LmcConfig,
    LmcError,
    ModuleFileError,
    setup_logging,
)

__all__ = [
    "__version__",
    "BinaryEntry",
    "CacheBuilder",
    "ConfigurationError",
    "ExpansionError",
    "IndexStore",
    "IndexStoreError",
    "LmcConfig",
    "LmcError",
    "MatchMode",
    "ModuleFileError",
    "SearchEngine",
    "setup_logging",
]
