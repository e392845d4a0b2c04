"""Core utilities for lmc."""

from lmc.common.config import LmcConfig, resolve_data_dir, split_module_path
from lmc.common.errors import (
    ConfigurationError,
    DialectMismatch,
    ExpansionError,
    GrammarError,
    IndexStoreError,
    LmcError,
    ModuleFileError,
)
from lmc.common.logging import setup_logging

__all__ = [
    "LmcConfig",
    "resolve_data_dir",
    "split_module_path",
    "LmcError",
    "ConfigurationError",
    "ExpansionError",
    "ModuleFileError",
    "DialectMismatch",
    "GrammarError",
    "IndexStoreError",
    "setup_logging",
]
