"""Configuration management for lmc."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from lmc.common.errors import ConfigurationError

logger = logging.getLogger(__name__)

HOME_DATA_SUFFIX = Path(".cache") / "lmc"
DB_FILENAME = "lmc.db"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def split_module_path(module_path: str) -> list[str]:
    """Split a colon-delimited module path into an ordered list of roots.

    Empty entries are dropped and repeated roots keep only their first position.

    Example:
        >>> split_module_path("/opt/a::/opt/b:/opt/a")
        ['/opt/a', '/opt/b']
    """
    roots: list[str] = []
    for entry in module_path.split(":"):
        if entry and entry not in roots:
            roots.append(entry)
    return roots


def try_data_dir(path: Path) -> bool:
    """Check that a path can be used as the lmc data directory.

    The directory is created when missing.

    Returns:
        True if the path is a readable, writable and searchable directory
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        logger.warning(f"mkdir() failed for {path}: {err}")
        return False

    if not path.is_dir():
        logger.warning(f"{path} is not a directory")
        return False

    if not os.access(path, os.R_OK | os.W_OK | os.X_OK):
        logger.warning(f"insufficient permissions on {path}")
        return False

    return True


def resolve_data_dir(user_path: Path | None = None) -> Path:
    """Pick the data directory.

    Precedence:
        user_path
        $HOME/.cache/lmc
        a fresh /tmp/lmcXXXX directory

    Raises:
        ConfigurationError: If no candidate directory is usable
    """
    if user_path is not None and try_data_dir(user_path):
        return user_path

    home = os.getenv("HOME")
    if home:
        home_data = Path(home) / HOME_DATA_SUFFIX
        if try_data_dir(home_data):
            return home_data
    else:
        logger.warning("HOME variable not set!")

    try:
        fallback = Path(tempfile.mkdtemp(prefix="lmc"))
    except OSError as err:
        raise ConfigurationError(f"couldn't initialize any valid data directories: {err}") from err

    if not try_data_dir(fallback):
        raise ConfigurationError("couldn't initialize any valid data directories!")
    return fallback


@dataclass
class LmcConfig:
    """Runtime configuration for building and searching the cache."""

    module_path: str = ""
    data_dir: Path | None = None
    verbose: bool = False
    jobs: int = 1
    share_variables: bool = False
    log_level: str | None = None
    log_file: Path | None = None

    @property
    def module_roots(self) -> list[str]:
        return split_module_path(self.module_path)

    @classmethod
    def from_env(cls) -> LmcConfig:
        """Load configuration from environment variables.

        Expected variables:
            MODULEPATH: colon-delimited module roots
            LMC_DATA_DIR: data directory override (optional)
            LMC_VERBOSE: enable verbose output (optional)
            LMC_JOBS: number of build worker threads (optional)
            LMC_SHARE_VARIABLES: share Tcl variables across module files (optional)
            LOG_LEVEL: explicit log level (optional)
            LMC_LOG_FILE: file that also receives log records (optional)

        Returns:
            LmcConfig instance
        """
        data_dir = os.getenv("LMC_DATA_DIR")
        log_file = os.getenv("LMC_LOG_FILE")
        jobs = os.getenv("LMC_JOBS", "1")
        try:
            jobs_value = int(jobs)
        except ValueError as err:
            raise ConfigurationError(f"LMC_JOBS must be an integer, got {jobs!r}") from err

        return cls(
            module_path=os.getenv("MODULEPATH", ""),
            data_dir=Path(data_dir) if data_dir else None,
            verbose=_env_flag("LMC_VERBOSE"),
            jobs=jobs_value,
            share_variables=_env_flag("LMC_SHARE_VARIABLES"),
            log_level=os.getenv("LOG_LEVEL") or None,
            log_file=Path(log_file) if log_file else None,
        )

    @classmethod
    def load(cls, env_file: Path | None = None, load_env: bool = True) -> LmcConfig:
        """Load configuration, reading a .env file first.

        Args:
            env_file: Optional path to .env file. If not provided,
                     looks for .env in current directory or ~/.lmc.env
            load_env: Whether to load from .env files (default True). Set False in tests.
        """
        if load_env:
            if env_file and env_file.exists():
                load_dotenv(env_file)
            else:
                for default in [
                    Path(".env"),
                    Path.home() / ".lmc.env",
                ]:
                    if default.exists():
                        load_dotenv(default)
                        break

        return cls.from_env()

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "DEBUG" if self.verbose else "WARNING"

    def validate(self) -> dict[str, str]:
        """Validate configuration.

        Returns:
            Dict of field names to error messages (empty if valid)
        """
        errors = {}
        if self.jobs < 1:
            errors["jobs"] = "jobs must be at least 1"
        if self.log_level and not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors["log_level"] = f"unknown log level {self.log_level}"
        return errors

    def require_valid(self) -> None:
        """Raise ConfigurationError if any field is invalid."""
        errors = self.validate()
        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - "
                + "\n  - ".join(f"{key}: {msg}" for key, msg in errors.items())
            )

    def database_path(self) -> Path:
        """Resolve the data directory and return the path of the index database."""
        self.data_dir = resolve_data_dir(self.data_dir)
        return self.data_dir / DB_FILENAME
